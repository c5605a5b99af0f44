"""FastAPI service for FlipAnalyzer."""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Header, HTTPException, Query
from pydantic import BaseModel

from flipanalyzer.analysis.buybox import analyze_deal
from flipanalyzer.analysis.calculator import QuickCalculator
from flipanalyzer.analysis.portfolio import calculate_portfolio_stats
from flipanalyzer.config import AppConfig, Secrets, load_secrets
from flipanalyzer.db.repository import Repository
from flipanalyzer.integrations.property_lookup import PropertyLookupClient
from flipanalyzer.integrations.rooted import RootedClient
from flipanalyzer.models import (
    BuyBox,
    BuyBoxUpdate,
    Deal,
    DealAnalysis,
    DealUpdate,
    InvalidStatusTransition,
    QuickCalcInput,
    WebhookPayload,
)

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    deal: Deal
    buy_box: BuyBox


class LoanRequest(BaseModel):
    loan_amount: float


def _sort_value(analysis: DealAnalysis | None, field: str) -> float:
    # Unanalyzed deals and NaN ratios sort last
    value = getattr(analysis, field) if analysis else -math.inf
    return -math.inf if math.isnan(value) else value


def _deal_payload(deal: Deal, analysis: DealAnalysis | None = None) -> dict:
    data = deal.model_dump(mode="json")
    data["analysis"] = analysis.model_dump(mode="json") if analysis else None
    return data


def create_app(
    cfg: AppConfig,
    repo: Repository | None = None,
    secrets: Secrets | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    repo = repo or Repository(cfg.database.url)
    secrets = secrets or load_secrets()
    calculator = QuickCalculator(cfg.calculator)
    rooted = RootedClient(repo, secrets, cfg.integrations, client=http_client)
    lookup = PropertyLookupClient(secrets, cfg.integrations, client=http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for missing in secrets.missing():
            logger.warning("Optional integration disabled, missing %s", missing)
        yield
        await rooted.close()
        await lookup.close()

    app = FastAPI(title="FlipAnalyzer", version="0.1.0", lifespan=lifespan)

    def _require_deal(deal_id: str, user_id: str) -> Deal:
        deal = repo.get_deal(deal_id, user_id)
        if deal is None:
            raise HTTPException(status_code=404, detail="Deal not found")
        return deal

    def _require_buy_box(buy_box_id: str | None, user_id: str) -> BuyBox:
        if buy_box_id:
            buy_box = repo.get_buy_box(buy_box_id, user_id)
        else:
            buy_box = repo.get_default_buy_box(user_id)
        if buy_box is None:
            raise HTTPException(status_code=404, detail="Buy box not found")
        return buy_box

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/config")
    async def get_config():
        """Return current configuration with secrets masked."""
        return {**cfg.model_dump(), "integrations_env": secrets.safe_dump()}

    # -- stateless analysis ------------------------------------------------

    @app.post("/api/calculator")
    async def quick_calculator(data: QuickCalcInput):
        """Run the standalone quick calculator on form input."""
        result = calculator.calculate(data)
        return {**result.model_dump(mode="json"), "summary": calculator.summary(data, result)}

    @app.post("/api/analyze")
    async def analyze(request: AnalyzeRequest):
        """Analyze an unsaved deal against an unsaved buy box."""
        return analyze_deal(request.deal, request.buy_box).model_dump(mode="json")

    # -- deals -------------------------------------------------------------

    @app.get("/api/deals")
    async def list_deals(
        x_user_id: str = Header(...),
        status: str = Query(None),
        grade: str = Query(None),
        sort_by: str = Query("created_at"),
    ):
        """List a user's deals with their stored analyses."""
        deals = repo.get_deals(x_user_id)
        analyses = repo.get_analyses(x_user_id)
        if status:
            deals = [d for d in deals if d.status.value == status]
        if grade:
            deals = [d for d in deals if d.id in analyses and analyses[d.id].grade.value == grade]

        if sort_by in ("projected_profit", "cash_on_cash_roi"):
            deals.sort(key=lambda d: _sort_value(analyses.get(d.id), sort_by), reverse=True)
        elif sort_by != "created_at":
            raise HTTPException(
                status_code=400,
                detail="sort_by must be one of: created_at, projected_profit, cash_on_cash_roi",
            )
        return {"deals": [_deal_payload(d, analyses.get(d.id)) for d in deals]}

    @app.post("/api/deals", status_code=201)
    async def create_deal(deal: Deal, x_user_id: str = Header(...)):
        return _deal_payload(repo.create_deal(deal, x_user_id))

    @app.get("/api/deals/{deal_id}")
    async def get_deal(deal_id: str, x_user_id: str = Header(...)):
        deal = _require_deal(deal_id, x_user_id)
        return _deal_payload(deal, repo.get_analysis(deal_id, x_user_id))

    @app.patch("/api/deals/{deal_id}")
    async def update_deal(deal_id: str, updates: DealUpdate, x_user_id: str = Header(...)):
        try:
            deal = repo.update_deal(deal_id, updates.model_dump(exclude_unset=True), x_user_id)
        except InvalidStatusTransition as e:
            raise HTTPException(status_code=409, detail=str(e))
        if deal is None:
            raise HTTPException(status_code=404, detail="Deal not found")
        return _deal_payload(deal, repo.get_analysis(deal_id, x_user_id))

    @app.delete("/api/deals/{deal_id}", status_code=204)
    async def delete_deal(deal_id: str, x_user_id: str = Header(...)):
        if not repo.delete_deal(deal_id, x_user_id):
            raise HTTPException(status_code=404, detail="Deal not found")

    @app.post("/api/deals/{deal_id}/analyze")
    async def analyze_saved_deal(
        deal_id: str,
        x_user_id: str = Header(...),
        buy_box_id: str = Query(None, description="Buy box to grade against (default: user's default)"),
    ):
        """Analyze a stored deal and save the result on it."""
        deal = _require_deal(deal_id, x_user_id)
        buy_box = _require_buy_box(buy_box_id, x_user_id)
        analysis = analyze_deal(deal, buy_box)
        deal = repo.save_deal_analysis(deal_id, analysis, x_user_id) or deal
        return _deal_payload(deal, analysis)

    @app.get("/api/portfolio")
    async def portfolio(x_user_id: str = Header(...)):
        stats = calculate_portfolio_stats(repo.get_deals(x_user_id), repo.get_analyses(x_user_id))
        return stats.model_dump(mode="json")

    # -- buy boxes ---------------------------------------------------------

    @app.get("/api/buy-boxes")
    async def list_buy_boxes(x_user_id: str = Header(...)):
        return {"buy_boxes": [b.model_dump(mode="json") for b in repo.get_buy_boxes(x_user_id)]}

    @app.post("/api/buy-boxes", status_code=201)
    async def create_buy_box(buy_box: BuyBox, x_user_id: str = Header(...)):
        return repo.create_buy_box(buy_box, x_user_id).model_dump(mode="json")

    @app.get("/api/buy-boxes/default")
    async def default_buy_box(x_user_id: str = Header(...)):
        return _require_buy_box(None, x_user_id).model_dump(mode="json")

    @app.get("/api/buy-boxes/{buy_box_id}")
    async def get_buy_box(buy_box_id: str, x_user_id: str = Header(...)):
        return _require_buy_box(buy_box_id, x_user_id).model_dump(mode="json")

    @app.patch("/api/buy-boxes/{buy_box_id}")
    async def update_buy_box(
        buy_box_id: str, updates: BuyBoxUpdate, x_user_id: str = Header(...)
    ):
        buy_box = repo.update_buy_box(buy_box_id, updates.model_dump(exclude_unset=True), x_user_id)
        if buy_box is None:
            raise HTTPException(status_code=404, detail="Buy box not found")
        return buy_box.model_dump(mode="json")

    @app.delete("/api/buy-boxes/{buy_box_id}", status_code=204)
    async def delete_buy_box(buy_box_id: str, x_user_id: str = Header(...)):
        if not repo.delete_buy_box(buy_box_id, x_user_id):
            raise HTTPException(status_code=404, detail="Buy box not found")

    @app.post("/api/buy-boxes/{buy_box_id}/default")
    async def set_default_buy_box(buy_box_id: str, x_user_id: str = Header(...)):
        buy_box = repo.set_default_buy_box(buy_box_id, x_user_id)
        if buy_box is None:
            raise HTTPException(status_code=404, detail="Buy box not found")
        return buy_box.model_dump(mode="json")

    # -- partner integrations ---------------------------------------------

    @app.post("/api/deals/{deal_id}/sync")
    async def sync_deal(deal_id: str, x_user_id: str = Header(...)):
        """Push a closed deal to Rooted Wealth."""
        return (await rooted.sync_deal(deal_id, x_user_id)).model_dump()

    @app.post("/api/sync")
    async def sync_all(x_user_id: str = Header(...)):
        return (await rooted.sync_all_closed_deals(x_user_id)).model_dump()

    @app.get("/api/wealth-summary")
    async def wealth_summary(x_user_id: str = Header(...)):
        summary = await rooted.get_wealth_summary(x_user_id)
        if summary is None:
            raise HTTPException(status_code=502, detail="Rooted Wealth summary unavailable")
        return summary.model_dump()

    @app.post("/api/deals/{deal_id}/pre-qualification")
    async def pre_qualification(deal_id: str, x_user_id: str = Header(...)):
        return (await rooted.check_pre_qualification(x_user_id, deal_id)).model_dump()

    @app.post("/api/deals/{deal_id}/loan-application")
    async def loan_application(deal_id: str, request: LoanRequest, x_user_id: str = Header(...)):
        result = await rooted.submit_loan_application(x_user_id, deal_id, request.loan_amount)
        return result.model_dump()

    @app.post("/api/webhooks/rooted-wealth")
    async def rooted_wealth_webhook(payload: WebhookPayload):
        return {"updated": rooted.handle_webhook(payload)}

    @app.get("/api/property-lookup")
    async def property_lookup(address: str = Query(..., min_length=1)):
        """Look up listing details for an address."""
        result = await lookup.search_property(address)
        return result.model_dump(by_alias=True)

    return app
