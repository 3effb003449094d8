from __future__ import annotations

from typing import List

from fastapi import APIRouter

from club.plans.api.plans_routes import router as plans_router


def get_routers() -> List[APIRouter]:
    return [plans_router]
