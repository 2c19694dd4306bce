"""Relay registry and factory."""

from __future__ import annotations

import logging

from site_discovery.config import Settings
from site_discovery.relays.base import (
    FailureReason,
    Relay,
    RelayAborted,
    RelayError,
    RelayKind,
    RelayStatusError,
)
from site_discovery.relays.proxy import PROXY_ENDPOINTS, ProxyRelay
from site_discovery.relays.render import RenderRelay

logger = logging.getLogger(__name__)

_RELAY_REGISTRY: dict[str, RelayKind] = {kind.value: kind for kind in RelayKind}

__all__ = [
    "FailureReason",
    "ProxyRelay",
    "Relay",
    "RelayAborted",
    "RelayError",
    "RelayKind",
    "RelayStatusError",
    "RenderRelay",
    "build_relays",
    "get_relay",
    "list_relays",
]


def get_relay(name: str, settings: Settings) -> Relay:
    """Instantiate a relay by name."""
    if name not in _RELAY_REGISTRY:
        available = ", ".join(list_relays())
        raise ValueError(f"Unknown relay '{name}'. Available: {available}")

    kind = _RELAY_REGISTRY[name]
    if kind in PROXY_ENDPOINTS:
        return ProxyRelay(settings, kind)
    return RenderRelay(settings)


def list_relays() -> list[str]:
    return sorted(_RELAY_REGISTRY)


def build_relays(settings: Settings) -> list[Relay]:
    """Relays in fallback order: configured proxies, then the render relay if set."""
    relays = [
        get_relay(name, settings)
        for name in settings.relay_order
        if name != RelayKind.RENDER.value
    ]
    if settings.render_relay_url:
        relays.append(RenderRelay(settings))
    else:
        logger.debug("Render relay disabled (no RENDER_RELAY_URL)")
    return relays
