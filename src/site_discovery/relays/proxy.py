"""Pass-through CORS proxies that take the target URL in their own URL."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

import httpx

from site_discovery.config import Settings
from site_discovery.relays.base import Relay, RelayError, RelayKind


@dataclass(frozen=True)
class ProxyEndpoint:
    template: str
    encode_target: bool = False
    requested_with: bool = False


PROXY_ENDPOINTS: dict[RelayKind, ProxyEndpoint] = {
    RelayKind.CORS_SH: ProxyEndpoint("https://proxy.cors.sh/{url}", requested_with=True),
    RelayKind.CODETABS: ProxyEndpoint(
        "https://api.codetabs.com/v1/proxy?quest={url}", encode_target=True
    ),
    RelayKind.CORSPROXY_IO: ProxyEndpoint("https://corsproxy.io/?{url}", encode_target=True),
    RelayKind.CORS_ANYWHERE: ProxyEndpoint(
        "https://cors-anywhere.herokuapp.com/{url}", requested_with=True
    ),
}


class ProxyRelay(Relay):
    def __init__(self, settings: Settings, kind: RelayKind) -> None:
        super().__init__(settings)
        if kind not in PROXY_ENDPOINTS:
            raise ValueError(f"{kind.value} is not a proxy relay")
        self.kind = kind
        self._endpoint = PROXY_ENDPOINTS[kind]

    def proxy_url(self, url: str) -> str:
        target = quote(url, safe="") if self._endpoint.encode_target else url
        return self._endpoint.template.format(url=target)

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "text/html"}
        if self._endpoint.requested_with:
            headers["X-Requested-With"] = "XMLHttpRequest"
        if self.kind is RelayKind.CORS_SH and self.settings.cors_sh_api_key:
            headers["x-cors-api-key"] = self.settings.cors_sh_api_key
        return headers

    async def fetch(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.get(self.proxy_url(url), headers=self.headers())
        except httpx.RequestError as exc:
            raise self._wrap_request_error(exc) from exc

        self._raise_for_status(response)
        try:
            body = response.text
        except UnicodeDecodeError as exc:
            raise RelayError(f"{self.name} returned an unreadable body: {exc}") from exc
        if not body.strip():
            raise RelayError(f"{self.name} returned an empty body")
        return body
