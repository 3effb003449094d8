from __future__ import annotations

from typing import List

from fastapi import APIRouter

from club.enrollment.api.enrollment_routes import router as enrollment_router


def get_routers() -> List[APIRouter]:
    return [enrollment_router]
