# daily_news/normalize.py
"""
Tolerant boundary between model/API output and Card.

Everything that guesses which field held a value lives here. The output is
always one card per expected category, in order, whatever the input looked
like.
"""
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from .constants import (
    CATEGORIES,
    CATEGORY_FALLBACK_URLS,
    CATEGORY_ORDER,
    CITATION_SEPARATOR,
    FALLBACK_HEADLINE,
    MAX_BULLETS,
    PLACEHOLDER_HEADLINE,
    PLACEHOLDER_SUMMARY,
)
from .models import Card
from .results import Err, ErrorKind, Ok, Result

_URL_RE = re.compile(r"https?://[^\s<>\"'\]]+")
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_LABEL_STRIP = " \t-–—|:·,;()[]<>\"'"

# labels that show the model echoed a category instead of naming a source
_PLACEHOLDER_LABELS = frozenset(CATEGORIES)


def _first(record: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = record.get(name)
        if value not in (None, ""):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _unwrap(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for name in ("cards", "items", "articles"):
            if isinstance(raw.get(name), list):
                return raw[name]
    return []


def _category_of(record: Dict[str, Any]) -> Optional[str]:
    value = record.get("category")
    if isinstance(value, str) and value.strip().lower() in CATEGORIES:
        return value.strip().lower()
    return None


def _hostname(url: str) -> str:
    host = urlparse(url).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host or url


def _citation_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        name = _first(value, "name", "source", "title", "label")
        if isinstance(name, dict):
            name = name.get("name")
        url = _first(value, "url", "link", "href")
        name = _as_text(name) or ""
        url = _as_text(url) or ""
        if name and url:
            return f"{name}{CITATION_SEPARATOR}{url}"
        return url or name
    return str(value)


def _trim_url(url: str) -> str:
    """Drop trailing punctuation and any unmatched closing parenthesis."""
    while True:
        trimmed = url.rstrip(".,;")
        if trimmed.endswith(")") and trimmed.count(")") > trimmed.count("("):
            trimmed = trimmed[:-1]
        if trimmed == url:
            return url
        url = trimmed


def format_citation(value: Any) -> str:
    """
    Format one citation as "Name — URL".

    Already formatted strings and strings without a URL come back unchanged
    (apart from surrounding whitespace), so formatting is idempotent.
    """
    text = _citation_text(value).strip()
    if not text or CITATION_SEPARATOR in text:
        return text
    match = _URL_RE.search(text)
    if not match:
        return text
    url = _trim_url(match.group(0))
    end = match.start() + len(url)
    label = re.sub(r"\s+", " ", f"{text[:match.start()]} {text[end:]}").strip(_LABEL_STRIP)
    if not label:
        label = _hostname(url)
    return f"{label}{CITATION_SEPARATOR}{url}"


def citation_label(citation: str) -> str:
    return citation.split(CITATION_SEPARATOR, 1)[0].strip()


def fallback_citation(category: str) -> str:
    url = CATEGORY_FALLBACK_URLS.get(category, CATEGORY_FALLBACK_URLS["top"])
    return f"{category.capitalize()} News{CITATION_SEPARATOR}{url}"


def normalize_citations(raw: Any, category: str) -> List[str]:
    if isinstance(raw, list):
        values = raw
    elif raw is None:
        values = []
    else:
        values = [raw]

    out: List[str] = []
    for value in values:
        citation = format_citation(value)
        if not citation or citation in out:
            continue
        if citation_label(citation).lower() in _PLACEHOLDER_LABELS:
            continue
        out.append(citation)
    if not out:
        out.append(fallback_citation(category))
    return out


def first_sentence(text: str) -> str:
    text = text.strip()
    if not text:
        return ""
    return _SENTENCE_END_RE.split(text, 1)[0].strip()


def normalize_bullets(raw: Any, summary: str) -> List[str]:
    if isinstance(raw, str):
        raw = [raw]
    bullets = []
    if isinstance(raw, list):
        for b in raw:
            text = _as_text(b)
            if text:
                bullets.append(text)
    bullets = bullets[:MAX_BULLETS]
    if len(bullets) == 1:
        extra = first_sentence(summary)
        if extra and extra != bullets[0]:
            bullets.append(extra)
    return bullets


def _unique_id(candidate: str, seen_ids: set) -> str:
    card_id, n = candidate, 2
    while card_id in seen_ids:
        card_id = f"{candidate}-{n}"
        n += 1
    seen_ids.add(card_id)
    return card_id


def placeholder_card(category: str, timestamp: str, seen_ids: Optional[set] = None) -> Card:
    card_id = f"placeholder-{category}"
    if seen_ids is not None:
        card_id = _unique_id(card_id, seen_ids)
    return Card(
        id=card_id,
        headline=PLACEHOLDER_HEADLINE,
        summary=PLACEHOLDER_SUMMARY,
        category=category,
        timestamp=timestamp,
        bullets=[],
        citations=[],
    )


def placeholder_cards(categories: Sequence[str] = CATEGORY_ORDER,
                      timestamp: Optional[str] = None) -> List[Card]:
    ts = timestamp or _now_iso()
    return [placeholder_card(c, ts) for c in categories]


def _build_card(index: int, slot: str, record: Dict[str, Any], timestamp: str,
                seen_ids: set) -> Card:
    card_id = _as_text(record.get("id"))
    if card_id and card_id.startswith("placeholder-"):
        # already normalized placeholder; keep it one
        ts = _as_text(record.get("timestamp")) or timestamp
        return placeholder_card(slot, ts, seen_ids)
    if not card_id or card_id in seen_ids:
        card_id = f"card-{index}"
    card_id = _unique_id(card_id, seen_ids)

    headline = _as_text(_first(record, "headline", "title")) or FALLBACK_HEADLINE
    summary = _as_text(_first(record, "summary", "description", "summary_raw")) or ""
    ts = _as_text(_first(record, "timestamp", "publishedAt", "published_at")) or timestamp

    return Card(
        id=card_id,
        headline=headline,
        summary=summary,
        category=slot,
        timestamp=ts,
        bullets=normalize_bullets(_first(record, "bullets", "key_points", "keyPoints"), summary),
        citations=normalize_citations(_first(record, "citations", "sources", "source"), slot),
    )


def _assign_slots(records: List[Dict[str, Any]],
                  categories: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
    """
    A record whose category names a free slot takes that slot; the rest
    fill the remaining slots in input order.
    """
    claimed: Dict[str, Dict[str, Any]] = {}
    leftovers: List[Dict[str, Any]] = []
    for rec in records:
        cat = _category_of(rec)
        if cat in categories and cat not in claimed:
            claimed[cat] = rec
        else:
            leftovers.append(rec)

    slots: List[Optional[Dict[str, Any]]] = []
    for cat in categories:
        if cat in claimed:
            slots.append(claimed[cat])
        elif leftovers:
            slots.append(leftovers.pop(0))
        else:
            slots.append(None)
    return slots


def normalize_cards(raw: Any,
                    categories: Sequence[str] = CATEGORY_ORDER,
                    fallback_timestamp: Optional[str] = None) -> List[Card]:
    """
    Coerce parsed model/API output into exactly len(categories) cards.

    Accepts a list of card-like dicts or {"cards": [...]}; anything else
    yields placeholders. Never raises.
    """
    timestamp = fallback_timestamp or _now_iso()
    records = [r for r in _unwrap(raw) if isinstance(r, dict)]

    cards: List[Card] = []
    seen_ids: set = set()
    for i, (slot, record) in enumerate(zip(categories, _assign_slots(records, categories))):
        if record is None:
            cards.append(placeholder_card(slot, timestamp, seen_ids))
        else:
            cards.append(_build_card(i, slot, record, timestamp, seen_ids))
    return cards


def _json_span(text: str) -> Optional[Tuple[int, int]]:
    starts = [i for i in (text.find("["), text.find("{")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "]" if text[start] == "[" else "}"
    end = text.rfind(closer)
    if end <= start:
        return None
    return start, end + 1


def parse_model_output(text: Optional[str]) -> Result:
    """
    Parse model text as JSON, tolerating Markdown fences and prose around
    the payload. Ok(parsed) or Err(SHAPE).
    """
    if not text or not text.strip():
        return Err(ErrorKind.SHAPE, "empty model output")
    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        return Ok(json.loads(cleaned))
    except ValueError:
        pass
    span = _json_span(cleaned)
    if span:
        try:
            return Ok(json.loads(cleaned[span[0]:span[1]]))
        except ValueError:
            pass
    return Err(ErrorKind.SHAPE, f"model output is not JSON: {cleaned[:80]!r}")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
