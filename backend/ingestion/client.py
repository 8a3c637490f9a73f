from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from app.core.config import settings
from app.domain import MatchResult

from .normalize import normalize_fixture


class FootballApiClient:
    """Thin async wrapper around the API-Football fixtures endpoint."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or str(settings.api_football_base_url)
        self.api_key = api_key if api_key is not None else settings.api_football_key
        self.timeout = timeout or settings.api_football_timeout_seconds
        if not self.api_key:
            logger.warning("API_FOOTBALL_KEY not configured; fixture lookups will be rejected")
        headers = {"x-apisports-key": self.api_key} if self.api_key else {}
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )

    async def fetch_fixture(self, match_id: int) -> dict[str, Any] | None:
        logger.debug("API-Football GET /fixtures id={}", match_id)
        response = await self.client.get("/fixtures", params={"id": match_id})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            return None

        errors = payload.get("errors")
        if errors:
            # API-Football reports quota and auth failures with HTTP 200.
            raise httpx.HTTPStatusError(
                f"API-Football rejected fixture lookup: {errors}",
                request=response.request,
                response=response,
            )

        fixtures = payload.get("response")
        if not isinstance(fixtures, list) or not fixtures:
            return None
        primary = fixtures[0]
        return primary if isinstance(primary, dict) else None

    async def fetch_result(self, match_id: int) -> MatchResult | None:
        fixture = await self.fetch_fixture(match_id)
        if fixture is None:
            return None
        return normalize_fixture(fixture)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "FootballApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
