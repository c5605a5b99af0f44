"""Rooted Wealth / Rooted Lending partner integration.

Closed flips are pushed to Rooted Wealth as real-estate assets, and deals
can be pre-qualified and submitted for financing with Rooted Lending.
Every call is a single attempt; failures come back as result objects.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from flipanalyzer.config import IntegrationsConfig, Secrets
from flipanalyzer.db.repository import Repository
from flipanalyzer.models import (
    BulkSyncResult,
    Deal,
    DealStatus,
    LoanApplicationResult,
    PreQualification,
    SyncResult,
    WealthSummary,
    WebhookEvent,
    WebhookPayload,
)

logger = logging.getLogger(__name__)

# Pre-qualification policy
BASIC_MAX_LTV = 70.0
BASIC_LOAN_PCT = 0.80
MAX_LTV = 80.0
MIN_LIQUIDITY_RATIO = 0.25
MAX_LOAN_PCT_OF_PRICE = 0.85
MAX_LOAN_PCT_OF_NET_WORTH = 0.50


def asset_payload(deal: Deal, user_id: str) -> dict:
    """Body of the Rooted Wealth asset sync request."""
    purchase_date = deal.closed_at or deal.created_at
    return {
        "user_id": user_id,
        "name": f"Flip: {deal.street}",
        "type": "real_estate",
        "current_value": deal.estimated_arv or deal.list_price,
        "cost_basis": deal.list_price + deal.rehab_estimate,
        "purchase_date": purchase_date.isoformat() if purchase_date else None,
        "address": deal.address,
        "flip_analyzer_deal_id": deal.id,
        "description": (
            f"Flip deal from Flip Analyzer. ARV: ${deal.estimated_arv:,.0f}, "
            f"Rehab: ${deal.rehab_estimate:,.0f}"
        ),
    }


def loan_to_value(deal: Deal) -> float:
    value = deal.estimated_arv or deal.list_price
    return deal.list_price / value * 100


def pre_qualify(deal: Deal, summary: WealthSummary | None) -> PreQualification:
    """Apply the lending policy to a deal and the borrower's wealth summary.

    Without a summary only the deal's own LTV is considered.
    """
    if deal.list_price <= 0:
        return PreQualification(eligible=False, reason="Deal has no purchase price")

    ltv = loan_to_value(deal)

    if summary is None:
        if ltv <= BASIC_MAX_LTV:
            return PreQualification(
                eligible=True,
                max_loan_amount=deal.list_price * BASIC_LOAN_PCT,
                ltv_ratio=ltv,
            )
        return PreQualification(
            eligible=False, reason=f"LTV ratio too high (>{BASIC_MAX_LTV:.0f}%)", ltv_ratio=ltv
        )

    if ltv > MAX_LTV:
        return PreQualification(
            eligible=False, reason=f"LTV ratio too high (>{MAX_LTV:.0f}%)", ltv_ratio=ltv
        )

    liquidity_ratio = summary.total_assets / deal.list_price
    if liquidity_ratio < MIN_LIQUIDITY_RATIO:
        return PreQualification(
            eligible=False,
            reason="Insufficient liquidity (need 25% of purchase price in assets)",
            ltv_ratio=ltv,
        )

    max_loan = min(
        deal.list_price * MAX_LOAN_PCT_OF_PRICE,
        summary.net_worth * MAX_LOAN_PCT_OF_NET_WORTH,
    )
    return PreQualification(eligible=True, max_loan_amount=max_loan, ltv_ratio=ltv)


class RootedClient:
    """Talks to the Rooted Wealth and Rooted Lending APIs."""

    def __init__(
        self,
        repo: Repository,
        secrets: Secrets,
        config: IntegrationsConfig,
        client: httpx.AsyncClient | None = None,
    ):
        self.repo = repo
        self.wealth_url = secrets.rooted_wealth_url.rstrip("/")
        self.wealth_key = secrets.rooted_wealth_api_key
        self.lending_url = secrets.rooted_lending_url.rstrip("/")
        self.lending_key = secrets.rooted_lending_api_key
        self.cfg = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.cfg.timeout_seconds)
        return self._client

    @staticmethod
    def _auth(key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {key}"} if key else {}

    async def sync_deal(self, deal_id: str, user_id: str) -> SyncResult:
        """Push one closed deal to Rooted Wealth as an asset."""
        deal = self.repo.get_deal(deal_id, user_id)
        if deal is None:
            return SyncResult(success=False, error="Deal not found")
        if deal.status != DealStatus.CLOSED:
            return SyncResult(success=False, error="Deal must be closed before syncing")
        if not self.wealth_url:
            return SyncResult(success=False, error="Rooted Wealth sync is not configured")

        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self.wealth_url}/api/sync/asset",
                json=asset_payload(deal, user_id),
                headers=self._auth(self.wealth_key),
            )
        except httpx.HTTPError as e:
            logger.error("Sync error for deal %s: %s", deal_id, e)
            return SyncResult(success=False, error=str(e))

        if resp.is_error:
            logger.error("Sync rejected for deal %s: %s", deal_id, resp.status_code)
            return SyncResult(success=False, error=f"Failed to sync: {resp.text}")

        self.repo.mark_synced(deal_id, user_id)
        logger.info("Synced deal %s to Rooted Wealth", deal_id)
        return SyncResult(success=True)

    async def sync_all_closed_deals(self, user_id: str) -> BulkSyncResult:
        """Sync every closed deal of a user that has not been synced yet."""
        result = BulkSyncResult(success=True)
        for deal in self.repo.get_unsynced_closed_deals(user_id):
            outcome = await self.sync_deal(deal.id, user_id)
            if outcome.success:
                result.synced += 1
            else:
                result.failed += 1
                result.errors.append(f"Deal {deal.id}: {outcome.error}")
        return result

    async def get_wealth_summary(self, user_id: str) -> WealthSummary | None:
        if not self.wealth_url:
            return None
        client = await self._get_client()
        try:
            resp = await client.get(
                f"{self.wealth_url}/api/summary",
                params={"userId": user_id},
                headers=self._auth(self.wealth_key),
            )
            if resp.is_error:
                return None
            return WealthSummary.model_validate(resp.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning("Failed to fetch Rooted Wealth summary: %s", e)
            return None

    def handle_webhook(self, payload: WebhookPayload) -> bool:
        """Record a valuation update pushed from Rooted Wealth.

        Returns True when a deal was touched.
        """
        if not payload.flip_analyzer_deal_id:
            return False
        if payload.event != WebhookEvent.ASSET_UPDATED:
            return False
        return self.repo.touch_valuation_sync(payload.flip_analyzer_deal_id, payload.user_id)

    async def check_pre_qualification(self, user_id: str, deal_id: str) -> PreQualification:
        deal = self.repo.get_deal(deal_id, user_id)
        if deal is None:
            return PreQualification(eligible=False, reason="Deal not found")
        summary = await self.get_wealth_summary(user_id)
        return pre_qualify(deal, summary)

    async def submit_loan_application(
        self, user_id: str, deal_id: str, loan_amount: float
    ) -> LoanApplicationResult:
        """Submit a pre-qualified deal to Rooted Lending."""
        deal = self.repo.get_deal(deal_id, user_id)
        if deal is None:
            return LoanApplicationResult(success=False, error="Deal not found")

        pre_qual = await self.check_pre_qualification(user_id, deal_id)
        if not pre_qual.eligible:
            return LoanApplicationResult(success=False, error=pre_qual.reason)

        max_loan = pre_qual.max_loan_amount or 0.0
        if loan_amount > max_loan:
            return LoanApplicationResult(
                success=False,
                error=f"Requested amount exceeds max qualification of ${max_loan:,.0f}",
            )
        if not self.lending_url:
            return LoanApplicationResult(success=False, error="Rooted Lending is not configured")

        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self.lending_url}/api/applications",
                json={
                    "user_id": user_id,
                    "flip_analyzer_deal_id": deal_id,
                    "property_address": deal.address,
                    "purchase_price": deal.list_price,
                    "arv": deal.estimated_arv,
                    "rehab_estimate": deal.rehab_estimate,
                    "loan_amount": loan_amount,
                    "ltv_ratio": pre_qual.ltv_ratio,
                    "source": "flip_analyzer",
                },
                headers=self._auth(self.lending_key),
            )
            if resp.is_error:
                return LoanApplicationResult(success=False, error=resp.text)
            application_id = str(resp.json()["application_id"])
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("Loan application failed for deal %s: %s", deal_id, e)
            return LoanApplicationResult(success=False, error=str(e))

        self.repo.record_loan_application(deal_id, user_id, application_id)
        logger.info("Submitted loan application %s for deal %s", application_id, deal_id)
        return LoanApplicationResult(success=True, application_id=application_id)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
