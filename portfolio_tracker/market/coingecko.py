"""CoinGecko API client for live crypto prices."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..errors import FetchFailure
from .interface import PriceSource
from .models import PriceQuote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"


class CoinGeckoPriceSource(PriceSource):
    """PriceSource backed by the CoinGecko public REST API.

    Fetches GET /simple/price for all requested ids in a single call:

        ?ids=arbitrum,optimism&vs_currencies=usd&include_24hr_change=true

    which answers with

        {"arbitrum": {"usd": 0.21, "usd_24h_change": -1.3}, ...}

    Rate limits:
      - Public endpoint: roughly 5-15 req/min → poll every 60s (default)
      - Demo key (x-cg-demo-api-key header): 30 req/min
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        if not asset_ids:
            return {}

        params = {
            "ids": ",".join(asset_ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }
        try:
            response = await self._get_client().get(
                f"{self._base_url}/simple/price", params=params
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            # Common failures: 429 (rate limit), 5xx during CoinGecko incidents
            raise FetchFailure(f"CoinGecko returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchFailure(f"CoinGecko request failed: {e}") from e
        except ValueError as e:
            raise FetchFailure(f"CoinGecko response is not valid JSON: {e}") from e

        return self._parse(payload, asset_ids, timestamp=time.time())

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # --- Internal ---

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"accept": "application/json"}
            if self._api_key:
                headers["x-cg-demo-api-key"] = self._api_key
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=headers)
        return self._client

    @staticmethod
    def _parse(payload: Any, asset_ids: list[str], timestamp: float) -> dict[str, PriceQuote]:
        """Turn the raw JSON body into quotes, skipping unusable entries."""
        if not isinstance(payload, dict):
            raise FetchFailure(f"Unexpected CoinGecko payload type: {type(payload).__name__}")

        quotes: dict[str, PriceQuote] = {}
        for asset_id in asset_ids:
            entry = payload.get(asset_id)
            if not entry:
                continue  # No data this cycle
            try:
                price = float(entry["usd"])
                change = entry.get("usd_24h_change")
                quotes[asset_id] = PriceQuote(
                    asset_id=asset_id,
                    price=price,
                    change_24h=float(change) if change is not None else 0.0,
                    timestamp=timestamp,
                )
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping quote for %s: %s", asset_id, e)

        logger.debug("CoinGecko fetch: %d/%d assets priced", len(quotes), len(asset_ids))
        return quotes
