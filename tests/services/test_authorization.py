from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.authorization import Capability, Role, authorize, has_capability
from app.economy.errors import UnauthorizedError


def _actor(role: str, *, is_suspended: bool = False) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), role=role, is_suspended=is_suspended)


@pytest.mark.parametrize("capability", list(Capability))
def test_admin_holds_every_capability(capability: Capability) -> None:
    assert has_capability(_actor(Role.ADMIN.value), capability) is True


@pytest.mark.parametrize("role", ["user", "moderator", "ambassador"])
def test_non_admin_roles_hold_no_capability(role: str) -> None:
    assert has_capability(_actor(role), Capability.MANAGE_COMMISSION_TIERS) is False


def test_suspended_admin_is_denied() -> None:
    assert has_capability(_actor("admin", is_suspended=True), Capability.ADJUST_POINTS) is False


def test_unknown_role_and_missing_actor_are_denied() -> None:
    assert has_capability(_actor("superuser"), Capability.MANAGE_STORE) is False
    assert has_capability(None, Capability.MANAGE_STORE) is False


def test_authorize_raises_with_capability_context() -> None:
    with pytest.raises(UnauthorizedError) as exc_info:
        authorize(_actor("moderator"), Capability.FULFILL_REDEMPTIONS)

    assert exc_info.value.context == {"capability": "fulfill_redemptions"}


def test_authorize_allows_admin() -> None:
    authorize(_actor("admin"), Capability.RESET_DAILY_REWARDS)
