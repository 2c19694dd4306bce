"""Server-side rendering relay (headless browser endpoint), used last."""

from __future__ import annotations

import httpx

from site_discovery.config import Settings
from site_discovery.relays.base import Relay, RelayError, RelayKind, RelayStatusError


class RenderRelay(Relay):
    kind = RelayKind.RENDER

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        if not settings.render_relay_url:
            raise ValueError("RENDER_RELAY_URL is required for the render relay")
        self._endpoint = settings.render_relay_url

    async def fetch(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.post(
                self._endpoint,
                json={"url": url, "type": "crawler"},
            )
        except httpx.RequestError as exc:
            raise self._wrap_request_error(exc) from exc

        self._raise_for_status(response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise RelayError(f"render relay returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise RelayError("render relay returned an unexpected payload")

        if not payload.get("success"):
            error = payload.get("error") or "render relay reported failure"
            status = payload.get("status")
            if isinstance(status, int) and status >= 400:
                raise RelayStatusError(status, str(error))
            raise RelayError(str(error))

        html = payload.get("html")
        if not isinstance(html, str) or not html.strip():
            raise RelayError("render relay returned no html")
        return html
