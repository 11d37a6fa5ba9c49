# daily_news/services/llm_summarize.py
from __future__ import annotations

import json
import logging
from typing import Dict, List, Protocol, Sequence, Tuple

from openai import AsyncOpenAI

from ..constants import CATEGORY_ORDER, CITATION_SEPARATOR
from ..exceptions import APIKeyMissingError
from ..models import NewsItem

logger = logging.getLogger(__name__)

_CARD_SCHEMA = f"""{{
  "id": "unique-id",
  "headline": "USE THE EXACT TITLE PROVIDED (max 90 characters)",
  "summary": "2-3 sentences (200-350 chars) expanding on the headline without inventing details",
  "bullets": ["2-3 context points", "not made-up facts"],
  "category": "one of the requested categories",
  "timestamp": "publishedAt of the source article (ISO 8601)",
  "citations": ["Source Name{CITATION_SEPARATOR}https://article.url"]
}}"""

_CURATE_SYSTEM = f"""You are a news curator for an office lobby dashboard. You will receive real news article titles with publication times, sources and URLs, grouped by category.

YOUR JOB: Write ONLY the summary and bullets. DO NOT modify the headline or invent details.

RULES:
1. Return EXACTLY one card per requested category, in the requested order
2. Every card must be grounded in one supplied article for that category
3. Write a 2-3 sentence summary that expands on the headline
4. DO NOT invent specific numbers, times, locations, names, or statistics
5. Write 2-3 bullet points about why this matters or key context
6. Every card must have at least one citation formatted "Source Name{CITATION_SEPARATOR}URL" using the supplied source and url
7. If a category has no articles, leave that category out rather than inventing a story

Output: a raw JSON array of cards, no Markdown. Card format:
{_CARD_SCHEMA}"""

_SEARCH_SYSTEM = f"""You are a news curator for an office lobby dashboard with web search access.

Search the web for the most important non-political stories published in the last 24 hours and write one card per requested category.

RULES:
1. Return EXACTLY one card per requested category, in the requested order
2. Use only facts from the pages you found; do not invent numbers, names or quotes
3. Every card must cite the page it is based on, formatted "Source Name{CITATION_SEPARATOR}URL"
4. Headline max 90 characters; summary 2-3 sentences; 2-3 bullets

Output: a raw JSON array of cards, no Markdown. Card format:
{_CARD_SCHEMA}"""


class Summarizer(Protocol):
    async def complete(self, system: str, user: str, *, web_search: bool = False) -> str:
        ...


def format_items_for_llm(items: Sequence[NewsItem], limit: int = 6) -> List[Dict[str, str]]:
    return [
        {
            "title": it.get("title", ""),
            "url": it.get("url", ""),
            "source": it.get("source", ""),
            "publishedAt": it.get("publishedAt", ""),
            "description": (it.get("description") or "")[:300],
        }
        for it in list(items)[:limit]
    ]


def build_curation_prompt(items_by_category: Dict[str, List[NewsItem]],
                          categories: Sequence[str] = CATEGORY_ORDER,
                          per_category: int = 6) -> Tuple[str, str]:
    """(system, user) asking for one grounded card per category."""
    sections = []
    for cat in categories:
        items = format_items_for_llm(items_by_category.get(cat, []), per_category)
        sections.append(f"{cat.upper()} (pick 1):\n{json.dumps(items, indent=2)}")
    user = (
        f"Categories, in order: {', '.join(categories)}\n\n"
        "Select one story per category from these REAL articles:\n\n"
        + "\n\n".join(sections)
        + f"\n\nReturn a JSON array of {len(categories)} cards. "
        "Use the EXACT title from the input. Write summary and bullets only."
    )
    return _CURATE_SYSTEM, user


def build_search_prompt(today: str, categories: Sequence[str] = CATEGORY_ORDER) -> Tuple[str, str]:
    user = (
        f"Today is {today}. Categories, in order: {', '.join(categories)}.\n"
        "Local means the San Francisco Bay Area; weather means the US travel forecast.\n"
        f"Return a JSON array of {len(categories)} cards."
    )
    return _SEARCH_SYSTEM, user


class OpenAISummarizer:
    """
    Chat completions for curation; the Responses API with the web search
    tool for search mode.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 2000,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client
        if self.client is None and api_key:
            self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def complete(self, system: str, user: str, *, web_search: bool = False) -> str:
        if self.client is None:
            raise APIKeyMissingError("openai")

        if web_search:
            resp = await self.client.responses.create(
                model=self.model,
                tools=[{"type": "web_search_preview"}],
                instructions=system,
                input=user,
                max_output_tokens=self.max_tokens,
            )
            text = resp.output_text or ""
        else:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
            text = resp.choices[0].message.content or ""

        logger.info(f"OpenAI responded with {len(text)} chars")
        return text.strip()

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
