from __future__ import annotations

import ipaddress
import secrets
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

DENIED_IP_NOT_ALLOWED = "ip_not_allowed"
DENIED_INVALID_CREDENTIALS = "invalid_credentials"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@lru_cache(maxsize=32)
def parse_networks(raw: str) -> tuple[IPNetwork, ...]:
    """Parses a comma-separated list of CIDRs or bare addresses.

    Malformed entries are dropped, so a list with only bad entries allows nobody.
    """
    networks: list[IPNetwork] = []
    for entry in (part.strip() for part in raw.split(",")):
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def normalize_ip(value: str | None) -> str | None:
    candidate = (value or "").strip()
    if not candidate:
        return None
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return None


def ip_in_networks(client_ip: str | None, networks: tuple[IPNetwork, ...]) -> bool:
    if client_ip is None or not networks:
        return False
    try:
        address = ipaddress.ip_address(client_ip)
    except ValueError:
        return False
    return any(address in network for network in networks)


@dataclass(frozen=True, slots=True)
class InternalAccessPolicy:
    """Guards the internal admin surface: caller IP allowlist first, then the shared token."""

    token: str
    allowlist: str
    trusted_proxies: str = ""

    @classmethod
    def from_settings(cls, settings: object) -> InternalAccessPolicy:
        return cls(
            token=getattr(settings, "internal_api_token", ""),
            allowlist=getattr(settings, "internal_api_allowlist", ""),
            trusted_proxies=getattr(settings, "internal_api_trusted_proxies", "") or "",
        )

    def client_ip(self, request: Request) -> str | None:
        peer_ip = normalize_ip(request.client.host if request.client is not None else None)
        forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
        if forwarded_for and ip_in_networks(peer_ip, parse_networks(self.trusted_proxies)):
            # Only the left-most hop is the real caller; a malformed value yields no IP at all.
            return normalize_ip(forwarded_for.split(",", maxsplit=1)[0])
        return peer_ip

    def token_matches(self, received_token: str | None) -> bool:
        if not self.token or not received_token:
            return False
        return secrets.compare_digest(self.token, received_token)

    def denial_reason(self, request: Request) -> str | None:
        if not ip_in_networks(self.client_ip(request), parse_networks(self.allowlist)):
            return DENIED_IP_NOT_ALLOWED
        if not self.token_matches(request.headers.get(INTERNAL_TOKEN_HEADER)):
            return DENIED_INVALID_CREDENTIALS
        return None
