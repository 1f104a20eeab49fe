from __future__ import annotations

from enum import Enum
from typing import Protocol

import structlog

from app.economy.errors import UnauthorizedError

logger = structlog.get_logger(__name__)


class Role(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    AMBASSADOR = "ambassador"
    ADMIN = "admin"


class Capability(str, Enum):
    MANAGE_COMMISSION_TIERS = "manage_commission_tiers"
    MANAGE_AMBASSADORS = "manage_ambassadors"
    MANAGE_STORE = "manage_store"
    FULFILL_REDEMPTIONS = "fulfill_redemptions"
    ADJUST_POINTS = "adjust_points"
    RESET_DAILY_REWARDS = "reset_daily_rewards"
    MANAGE_PAYOUTS = "manage_payouts"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: frozenset(),
    Role.MODERATOR: frozenset(),
    Role.AMBASSADOR: frozenset(),
    Role.ADMIN: frozenset(Capability),
}


class Actor(Protocol):
    id: object
    role: str
    is_suspended: bool


def has_capability(actor: Actor | None, capability: Capability) -> bool:
    if actor is None or actor.is_suspended:
        return False
    try:
        role = Role(actor.role)
    except ValueError:
        return False
    return capability in ROLE_CAPABILITIES[role]


def authorize(actor: Actor | None, capability: Capability) -> None:
    """Raises ``UnauthorizedError`` unless ``actor`` holds ``capability``.

    Every privileged mutation calls this before touching any row.
    """
    if has_capability(actor, capability):
        return

    logger.warning(
        "authorization_denied",
        actor_user_id=str(actor.id) if actor is not None else None,
        actor_role=getattr(actor, "role", None),
        capability=capability.value,
    )
    raise UnauthorizedError(
        "Only administrators can perform this action.",
        capability=capability.value,
    )
