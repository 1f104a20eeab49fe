from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.core.config import Settings

SOURCE_REMOTE = "remote"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DISABLED = "disabled"

AD_SLOT_NAMES = ("header", "footer", "sidebar", "content", "mobile")


@dataclass(frozen=True, slots=True)
class ResolvedSetting:
    value: Any
    source: str

    @property
    def enabled(self) -> bool:
        return self.source != SOURCE_DISABLED


def _is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def resolve_setting(remote_value: object, env_value: object, *, disabled_value: Any = None) -> ResolvedSetting:
    """Resolves one setting through remote settings, then environment, then disabled."""
    if _is_present(remote_value):
        return ResolvedSetting(value=remote_value, source=SOURCE_REMOTE)
    if _is_present(env_value):
        return ResolvedSetting(value=env_value, source=SOURCE_ENVIRONMENT)
    return ResolvedSetting(value=disabled_value, source=SOURCE_DISABLED)


@dataclass(frozen=True, slots=True)
class AdNetworkConfig:
    enabled: bool
    client_id: str | None
    slots: dict[str, str | None]
    source: str


def resolve_ad_network_config(remote: Mapping[str, Any] | None, settings: Settings) -> AdNetworkConfig:
    remote = remote or {}
    client_id = resolve_setting(remote.get("adsenseClientId"), settings.adsense_client_id)
    enabled_flag = resolve_setting(remote.get("adsenseEnabled"), settings.adsense_enabled, disabled_value=True)

    slots: dict[str, str | None] = {}
    for slot in AD_SLOT_NAMES:
        remote_key = f"adsense{slot.capitalize()}Slot"
        env_value = getattr(settings, f"adsense_{slot}_slot")
        slots[slot] = resolve_setting(remote.get(remote_key), env_value).value

    # Ads stay off without a client id whatever the flag says.
    enabled = client_id.enabled and bool(enabled_flag.value)
    return AdNetworkConfig(
        enabled=enabled,
        client_id=client_id.value if enabled else None,
        slots=slots if enabled else {slot: None for slot in AD_SLOT_NAMES},
        source=client_id.source,
    )
