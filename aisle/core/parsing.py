"""
Parsers for provider replies.

Two layers:
1. Envelope: pull the first textual candidate out of an SDK response object
   (or its plain-dict form). Providers do not always put the text in the same
   place, so each known reply shape is tried in order.
2. Payload: turn that text into the typed value a feature expects (an ordered
   id list, a sentiment verdict). Payload parsers raise ``ParseError``.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Mapping

from aisle.core.errors import ParseError
from aisle.core.models import Sentiment, SentimentResult


# ---------------------------------------------------------------------------
# Envelope variants
# ---------------------------------------------------------------------------

# Attribute access on SDK reply objects fails in a few ways when the field is
# absent or the reply was blocked (Gemini's ``.text`` raises ValueError).
_SHAPE_ERRORS = (AttributeError, ValueError, IndexError, KeyError, TypeError)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _first(seq: Any) -> Any:
    if seq is None or isinstance(seq, (str, bytes)):
        return None
    try:
        return seq[0] if len(seq) else None
    except _SHAPE_ERRORS:
        return None


def _text_accessor(reply: Any) -> str | None:
    """``reply.text`` (Gemini SDK convenience accessor) or ``{"text": ...}``."""
    try:
        text = _field(reply, "text")
    except _SHAPE_ERRORS:
        return None
    return text if isinstance(text, str) else None


def _candidate_parts(reply: Any) -> str | None:
    """``candidates[0].content.parts[*].text`` (raw Gemini shape)."""
    try:
        content = _field(_first(_field(reply, "candidates")), "content")
        parts = _field(content, "parts") or []
        texts = [_field(part, "text") for part in parts]
    except _SHAPE_ERRORS:
        return None
    texts = [t for t in texts if isinstance(t, str)]
    return "".join(texts) if texts else None


def _choice_message(reply: Any) -> str | None:
    """``choices[0].message.content`` (OpenAI chat completion shape)."""
    try:
        content = _field(_field(_first(_field(reply, "choices")), "message"), "content")
    except _SHAPE_ERRORS:
        return None
    return content if isinstance(content, str) else None


REPLY_SHAPES: tuple[tuple[str, Callable[[Any], str | None]], ...] = (
    ("text", _text_accessor),
    ("candidates", _candidate_parts),
    ("choices", _choice_message),
)


def extract_reply_text(reply: Any) -> str | None:
    """
    Extract the first textual candidate from a provider reply.

    Tries each entry of ``REPLY_SHAPES`` in order and returns the first
    non-blank text. If some shape matched but only held blank text, returns
    ``""`` so callers can tell "empty answer" from "unrecognized reply".

    Returns:
        The text, ``""`` for a blank answer, or None when no shape matched.
    """
    blank_seen = False
    for _name, extractor in REPLY_SHAPES:
        text = extractor(reply)
        if text is None:
            continue
        if text.strip():
            return text
        blank_seen = True
    return "" if blank_seen else None


# ---------------------------------------------------------------------------
# Payload parsers
# ---------------------------------------------------------------------------

_ID_SEPARATORS = re.compile(r"[,\n]+")
_ID_STRIP = " \t\r\"'`[]()*-."

_FENCED_BLOCK = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def parse_id_list(raw: str) -> list[str]:
    """
    Parse a comma-separated list of product ids, preserving order.

    Tolerates newlines as separators, surrounding quotes/brackets and
    list bullets. Duplicates keep their first position.
    """
    ids: list[str] = []
    seen: set[str] = set()
    for token in _ID_SEPARATORS.split(raw or ""):
        product_id = token.strip(_ID_STRIP)
        if product_id and product_id not in seen:
            seen.add(product_id)
            ids.append(product_id)
    return ids


def unwrap_code_fence(raw: str) -> str:
    """Strip a surrounding Markdown code fence, if present."""
    text = raw.strip()
    match = _FENCED_BLOCK.match(text)
    return match.group(1) if match else text


def parse_sentiment_json(raw: str) -> SentimentResult:
    """
    Strictly parse a ``{"sentiment": ..., "confidence": ...}`` reply.

    Raises:
        ParseError: If the reply is not a JSON object, the label is not one
            of positive/negative/neutral, or confidence is not a number
            in [0, 1].
    """
    try:
        data = json.loads(unwrap_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Sentiment reply is not JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError("Sentiment reply is not a JSON object")

    label = data.get("sentiment")
    try:
        sentiment = Sentiment(str(label).strip().lower())
    except ValueError:
        raise ParseError(f"Unknown sentiment label: {label!r}") from None

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ParseError(f"Confidence is not a number: {confidence!r}")
    if not 0.0 <= confidence <= 1.0:
        raise ParseError(f"Confidence out of range: {confidence}")

    return SentimentResult(label=sentiment, confidence=float(confidence))


__all__ = [
    "REPLY_SHAPES",
    "extract_reply_text",
    "parse_id_list",
    "parse_sentiment_json",
    "unwrap_code_fence",
]
