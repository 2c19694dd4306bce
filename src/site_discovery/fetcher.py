"""Fetch page markup through an ordered chain of fallback relays."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

import httpx

from site_discovery.config import Settings
from site_discovery.relays import (
    FailureReason,
    Relay,
    RelayAborted,
    RelayError,
    build_relays,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_failure(url: str, last_error: RelayError | None) -> RelayError:
    """Collapse the last relay error into the single error callers see."""
    if last_error is None:
        return RelayError("No relays configured")
    if last_error.status_code == 403:
        return RelayError(
            f"{url} is blocking automated access (HTTP 403 Forbidden)",
            reason=FailureReason.BLOCKED,
            status_code=403,
        )
    if last_error.reason is FailureReason.NETWORK:
        return RelayError(
            f"Could not reach {url}: network error or blocking access",
            reason=FailureReason.NETWORK,
        )
    return RelayError(
        str(last_error),
        reason=last_error.reason,
        status_code=last_error.status_code,
    )


async def _until_aborted(awaitable: Awaitable[T], abort: asyncio.Event | None) -> T:
    """Await ``awaitable`` unless ``abort`` fires first."""
    if abort is None:
        return await awaitable

    work = asyncio.ensure_future(awaitable)
    signal = asyncio.ensure_future(abort.wait())
    try:
        done, _ = await asyncio.wait({work, signal}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        signal.cancel()
        if not work.done():
            work.cancel()
    if work in done:
        return work.result()
    raise RelayAborted()


class RelayChain:
    """
    Tries each relay in order; the first readable 2xx response wins.

    A failed relay is never retried: the retry budget is spent by moving to
    the next relay. Pass ``client`` to reuse one ``httpx.AsyncClient``;
    otherwise a short-lived client is opened per page.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        relays: list[Relay] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.relays = relays if relays is not None else build_relays(self.settings)
        self._client = client

    async def fetch_page(self, url: str, abort: asyncio.Event | None = None) -> str:
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"URL must be absolute http(s): {url!r}")

        if self._client is not None:
            return await self._fetch_with(self._client, url, abort)

        async with httpx.AsyncClient(
            timeout=self.settings.relay_timeout,
            follow_redirects=True,
        ) as client:
            return await self._fetch_with(client, url, abort)

    async def _fetch_with(
        self,
        client: httpx.AsyncClient,
        url: str,
        abort: asyncio.Event | None,
    ) -> str:
        last_error: RelayError | None = None

        for relay in self.relays:
            if abort is not None and abort.is_set():
                raise RelayAborted()
            logger.debug("Trying relay %s for %s", relay.name, url)
            try:
                html = await _until_aborted(relay.fetch(client, url), abort)
            except RelayAborted:
                logger.debug("Fetch of %s aborted during %s", url, relay.name)
                raise
            except RelayError as exc:
                logger.warning("Relay %s failed for %s: %s", relay.name, url, exc)
                last_error = exc
                continue
            logger.info("Fetched %d bytes from %s via %s", len(html), url, relay.name)
            return html

        raise classify_failure(url, last_error)
