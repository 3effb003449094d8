# club/app/main.py
from __future__ import annotations

import ipaddress
from typing import List, Optional

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from club.app.config import get_settings
from club.contracts.module import register as register_contracts
from club.enrollment.module import register as register_enrollment
from club.plans.module import register as register_plans
from club.shared.logging import setup_logging
from club.shared.request_context import set_request_context


logger = structlog.get_logger(__name__)


def _deny() -> JSONResponse:
    return JSONResponse({"detail": "Forbidden."}, status_code=403)


def _parse_allowed_nets(raw: str) -> List[ipaddress.IPv4Network | ipaddress.IPv6Network]:
    nets: List[ipaddress.IPv4Network | ipaddress.IPv6Network] = []
    for part in (raw or "").split(","):
        p = part.strip()
        if not p:
            continue
        try:
            nets.append(ipaddress.ip_network(p, strict=False))
        except ValueError:
            logger.warning("security.allowlist.invalid_entry", entry=p)
    return nets


def _client_ip(request: Request) -> Optional[str]:
    # Reverse-proxy aware: X-Forwarded-For: client, proxy1, proxy2...
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(title="Club Enrollment API", version="0.1")

    register_plans(app)
    register_enrollment(app)
    register_contracts(app)

    # --- Allowlist IP (empty = open; auth/tenancy live in front of this service) ---
    allowed_nets = _parse_allowed_nets(settings.security_allowlist_ips)

    @app.middleware("http")
    async def allowlist_mw(request: Request, call_next):
        if not allowed_nets or request.url.path == "/health":
            return await call_next(request)

        ip = _client_ip(request)
        try:
            ip_obj = ipaddress.ip_address(ip or "")
        except ValueError:
            return _deny()
        if any(ip_obj in net for net in allowed_nets):
            return await call_next(request)
        logger.warning("security.allowlist.denied", client_ip=ip, path=request.url.path)
        return _deny()

    # --- Request context (ip/user-agent/request-id); registered last so it runs first ---
    @app.middleware("http")
    async def request_context_mw(request: Request, call_next):
        set_request_context(
            request_id=request.headers.get("x-request-id"),
            ip=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        return await call_next(request)

    # --- Health ---
    @app.get("/health")
    def health():
        return {"status": "ok", "env": settings.env_name}

    logger.info("app.created", env=settings.env_name)
    return app


app = create_app()
