from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import Header, HTTPException, Request

from app.services.internal_auth import InternalAccessPolicy

logger = structlog.get_logger(__name__)


def _get_settings():
    from app.api.routes import internal_admin

    return internal_admin.get_settings()


def _parse_uuid_header(value: str | None, *, header: str) -> UUID:
    if not value:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED", "header": header})
    try:
        return UUID(value.strip())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED", "header": header}) from exc


async def current_user_id(x_user_id: str | None = Header(default=None)) -> UUID:
    """Caller identity forwarded by the authentication proxy."""
    return _parse_uuid_header(x_user_id, header="X-User-Id")


def actor_id_from_request(request: Request) -> UUID:
    """Admin identity for capability checks; read after internal access is granted."""
    return _parse_uuid_header(request.headers.get("X-Actor-Id"), header="X-Actor-Id")


def _assert_internal_access(request: Request) -> None:
    policy = InternalAccessPolicy.from_settings(_get_settings())
    reason = policy.denial_reason(request)
    if reason is None:
        return

    logger.warning(
        "internal_admin_auth_failed",
        reason=reason,
        client_ip=policy.client_ip(request),
    )
    raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
