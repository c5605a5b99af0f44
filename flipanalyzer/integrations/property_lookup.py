"""Property-estimate lookup against an external listing data API.

Single-shot requests: a failure is reported in the result object and
logged, never retried.
"""

from __future__ import annotations

import logging
import math
import re
from statistics import mean

import httpx
from pydantic import ValidationError

from flipanalyzer.config import IntegrationsConfig, Secrets
from flipanalyzer.models import PropertyDetails, PropertyLookupResult, SalesComp

logger = logging.getLogger(__name__)

_ZIP_AT_END = re.compile(r"\d{5}(-\d{4})?$")


def zipcode_from_address(address: str) -> str:
    match = _ZIP_AT_END.search(address.strip())
    return match.group(0) if match else ""


def estimate_arv_from_comps(comps: list[SalesComp]) -> float:
    """Mean comp sale price rounded to the dollar, 0 without comps."""
    if not comps:
        return 0.0
    return float(math.floor(mean(c.sale_price for c in comps) + 0.5))


class PropertyLookupClient:
    """Looks up listing details, estimates and sold comps by address."""

    def __init__(
        self,
        secrets: Secrets,
        config: IntegrationsConfig,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = secrets.property_api_url.rstrip("/")
        self.api_key = secrets.property_api_key
        self.cfg = config
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.cfg.timeout_seconds,
                follow_redirects=True,
            )
        return self._client

    async def search_property(self, address: str) -> PropertyLookupResult:
        if not self.configured:
            return PropertyLookupResult(success=False, error="Property lookup is not configured")

        client = await self._get_client()
        try:
            resp = await client.get(f"{self.base_url}/properties", params={"address": address})
            resp.raise_for_status()
            payload = resp.json()
            if not payload.get("zipcode"):
                payload["zipcode"] = zipcode_from_address(payload.get("address") or address)
            payload.setdefault("address", address)
            details = PropertyDetails.model_validate(payload)
        except (httpx.HTTPError, ValidationError, ValueError, AttributeError) as e:
            logger.warning("Property lookup failed for %r: %s", address, e)
            return PropertyLookupResult(success=False, error="Failed to fetch property data")

        return PropertyLookupResult(success=True, data=details)

    async def get_zestimate(self, address: str) -> float | None:
        result = await self.search_property(address)
        if result.data and result.data.zestimate:
            return result.data.zestimate
        return None

    async def get_comps(self, address: str, radius: float | None = None) -> list[SalesComp]:
        """Recent comparable sales near an address; empty on any failure."""
        if not self.configured:
            return []

        client = await self._get_client()
        params = {"address": address, "radius": radius or self.cfg.comps_radius_miles}
        try:
            resp = await client.get(f"{self.base_url}/comps", params=params)
            resp.raise_for_status()
            items = resp.json()
            return [SalesComp.model_validate(item) for item in items]
        except (httpx.HTTPError, ValidationError, ValueError, TypeError) as e:
            logger.warning("Comp lookup failed for %r: %s", address, e)
            return []

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
