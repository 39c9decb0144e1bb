from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from polypanel.config import config
from polypanel.errors import DataUnavailableError, PayloadError
from polypanel.state import (
    CommandResult,
    PlayerRecord,
    ServerStatus,
    SessionRequest,
    SessionSnapshot,
    parse_players,
)


class GameServerClient:
    """
    Async JSON/HTTP client for the launcher dashboard API.

    Fetches (status, tracks, players) raise DataUnavailableError (PayloadError for
    bodies that do not decode). Commands never raise for transport problems: they
    return a CommandResult so callers can decide whether to resynchronize.
    """

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._base_url = value.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ---- transport ----

    @staticmethod
    async def _body_text(resp: aiohttp.ClientResponse) -> str:
        """Response body as text; bytes the charset cannot decode become U+FFFD."""
        raw = await resp.read()
        try:
            return raw.decode(resp.charset or "utf-8", errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    async def _get_json(self, path: str) -> Any:
        url = self._url(path)
        try:
            async with self._get_session().get(url) as resp:
                if resp.status >= 400:
                    text = await self._body_text(resp)
                    raise DataUnavailableError(f"GET {path} -> HTTP {resp.status}: {text.strip()}")
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise PayloadError(f"GET {path}: invalid JSON body: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DataUnavailableError(f"GET {path} failed: {e!r}") from e

    async def _post(self, path: str, payload: dict | None = None) -> CommandResult:
        url = self._url(path)
        try:
            async with self._get_session().post(url, json=payload) as resp:
                text = await self._body_text(resp)
                if resp.status >= 400:
                    logging.warning("POST %s -> HTTP %s: %s", path, resp.status, text.strip())
                    return CommandResult(
                        ok=False, status=resp.status, error=text.strip() or resp.reason
                    )
                data = None
                if text and resp.content_type == "application/json":
                    try:
                        data = json.loads(text)
                    except ValueError:
                        logging.debug("POST %s: ignoring undecodable JSON body", path)
                return CommandResult(ok=True, status=resp.status, data=data)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.warning("POST %s failed: %r", path, e)
            return CommandResult(ok=False, error=str(e) or type(e).__name__)

    # ---- queries ----

    async def status(self) -> ServerStatus:
        return ServerStatus.from_payload(await self._get_json("/server/status"))

    async def tracks(self) -> SessionSnapshot:
        return SessionSnapshot.from_payload(await self._get_json("/tracks"))

    async def players(self) -> list[PlayerRecord]:
        return parse_players(await self._get_json("/players"))

    # ---- commands ----

    async def start_server(self) -> CommandResult:
        return await self._post("/server/start")

    async def stop_server(self) -> CommandResult:
        return await self._post("/server/stop")

    async def create_invite(self) -> CommandResult:
        return await self._post("/invite")

    async def set_track(self, name: str) -> CommandResult:
        return await self._post("/tracks", {"name": name})

    async def kick(self, player_id: int) -> CommandResult:
        return await self._post("/kick", {"id": int(player_id)})

    async def end_session(self) -> CommandResult:
        return await self._post("/session/end")

    async def start_session(self) -> CommandResult:
        return await self._post("/session/start")

    async def set_session(self, request: SessionRequest) -> CommandResult:
        return await self._post("/session/set", request.to_payload())


# Module-level singleton instance
client = GameServerClient(base_url=config.api_url, timeout=config.request_timeout)
