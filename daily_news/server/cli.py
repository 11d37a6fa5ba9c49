# daily_news/server/cli.py
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

import typer

from ..config import Settings
from ..context import DOMAINS, AppContext, build_context
from ..exceptions import MarketDataUnavailableError
from ..logging_config import setup_logging
from ..services.market import default_tickers

app = typer.Typer(no_args_is_help=True, add_completion=False)


def parse_domain(s: str) -> str:
    s = (s or "").strip().lower()
    if s not in DOMAINS:
        raise typer.BadParameter(f"Use one of: {', '.join(DOMAINS)}")
    return s


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _run(fn: Callable[[AppContext], Awaitable[Any]]) -> Any:
    async def runner():
        ctx = build_context(Settings())
        try:
            return await fn(ctx)
        finally:
            await ctx.aclose()
    return asyncio.run(runner())


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")):
    """Daily news dashboard data: news cards, ticker strip and their caches."""
    settings = Settings()
    setup_logging(level="DEBUG" if verbose else settings.log_level, log_to_file=settings.env != "test")


@app.command("news")
def news_cmd(
    refresh: bool = typer.Option(False, "--refresh", help="Skip the cache and fetch live."),
):
    """Print today's news cards as JSON."""
    async def go(ctx: AppContext):
        if refresh:
            return await ctx.news.refresh(stale=ctx.store.peek(ctx.news.config.cache_key))
        return await ctx.news.fetch()

    cards = _run(go)
    _echo_json([c.to_dict() for c in cards])


@app.command("market")
def market_cmd(
    refresh: bool = typer.Option(False, "--refresh", help="Skip the cache and fetch live."),
):
    """Print ticker data as JSON. Exits 1 (printing default tickers) when no data is available."""
    async def go(ctx: AppContext):
        if refresh:
            return await ctx.market.refresh(stale=ctx.store.peek(ctx.market.config.cache_key))
        return await ctx.market.fetch()

    try:
        items = _run(go)
    except MarketDataUnavailableError as e:
        typer.echo(str(e), err=True)
        _echo_json([t.to_dict() for t in default_tickers(Settings().symbols)])
        raise typer.Exit(code=1)
    _echo_json([t.to_dict() for t in items])


@app.command("cache-info")
def cache_info_cmd(domain_value: str = typer.Argument(..., metavar="DOMAIN", help="news or market")):
    """Show what is cached for DOMAIN without touching it."""
    domain = parse_domain(domain_value)

    async def go(ctx: AppContext):
        key, hour = ctx.cache_target(domain)
        return {"key": key, "refreshHour": hour, **ctx.store.info(key, hour).to_dict()}

    _echo_json(_run(go))


@app.command("cache-clear")
def cache_clear_cmd(domain_value: str = typer.Argument(..., metavar="DOMAIN", help="news or market")):
    """Delete the cached entry for DOMAIN."""
    domain = parse_domain(domain_value)

    async def go(ctx: AppContext):
        key, _ = ctx.cache_target(domain)
        ctx.store.clear(key)
        return key

    key = _run(go)
    typer.echo(f"Cleared {key}.")


if __name__ == "__main__":
    app()
