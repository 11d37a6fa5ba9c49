# daily_news/server/api.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request

from ..context import DOMAINS, AppContext, build_context
from ..exceptions import MarketDataUnavailableError
from ..logging_config import setup_logging
from ..services.market import default_tickers


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _cache_target(ctx: AppContext, domain: str):
    if domain not in DOMAINS:
        raise HTTPException(status_code=404, detail=f"Unknown cache domain {domain!r}")
    return ctx.cache_target(domain)


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    JSON API for the dashboard front end. Pass a prepared context in tests;
    otherwise one is built from Settings at startup and closed at shutdown.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = context is None
        if owned:
            ctx = build_context()
            setup_logging(level=ctx.settings.log_level, log_to_file=ctx.settings.env != "test")
            app.state.context = ctx
        yield
        if owned:
            await app.state.context.aclose()

    app = FastAPI(title="Daily News Dashboard", lifespan=lifespan)
    if context is not None:
        app.state.context = context

    @app.get("/")
    def root():
        return {"ok": True, "message": "Daily news dashboard API. See /api/news and /api/market."}

    @app.get("/api/news")
    async def news(ctx: AppContext = Depends(get_context)):
        cards = await ctx.news.fetch()
        return {"cards": [c.to_dict() for c in cards]}

    @app.get("/api/market")
    async def market(ctx: AppContext = Depends(get_context)):
        try:
            items = await ctx.market.fetch()
            return {"tickers": [t.to_dict() for t in items], "fallback": False}
        except MarketDataUnavailableError as e:
            symbols = ctx.market.config.symbols
            return {"tickers": [t.to_dict() for t in default_tickers(symbols)], "fallback": True,
                    "error": str(e)}

    @app.get("/api/cache/{domain}")
    def cache_info(domain: str, ctx: AppContext = Depends(get_context)):
        key, hour = _cache_target(ctx, domain)
        return {"key": key, "refreshHour": hour, **ctx.store.info(key, hour).to_dict()}

    @app.delete("/api/cache/{domain}")
    def cache_clear(domain: str, ctx: AppContext = Depends(get_context)):
        key, _ = _cache_target(ctx, domain)
        ctx.store.clear(key)
        return {"cleared": key}

    return app


app = create_app()
