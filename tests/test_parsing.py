"""Tests for aisle.core.parsing — reply envelopes and payload parsers."""

from types import SimpleNamespace

import pytest

from aisle.core.errors import FailureKind, ParseError
from aisle.core.models import Sentiment
from aisle.core.parsing import (
    extract_reply_text,
    parse_id_list,
    parse_sentiment_json,
    unwrap_code_fence,
)


def _openai_reply(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _gemini_raw_reply(*texts):
    parts = [SimpleNamespace(text=t) for t in texts]
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))]
    )


class _BlockedReply:
    """Gemini replies raise from ``.text`` when the candidate was blocked."""

    candidates = []

    @property
    def text(self):
        raise ValueError("response was blocked")


class TestExtractReplyText:
    def test_text_accessor(self):
        assert extract_reply_text(SimpleNamespace(text="hello")) == "hello"

    def test_candidate_parts_joined(self):
        assert extract_reply_text(_gemini_raw_reply("Hel", "lo")) == "Hello"

    def test_choice_message(self):
        assert extract_reply_text(_openai_reply("p1,p2")) == "p1,p2"

    def test_dict_shapes(self):
        reply = {"choices": [{"message": {"content": "ok"}}]}
        assert extract_reply_text(reply) == "ok"

    def test_blank_answer_is_empty_string(self):
        assert extract_reply_text(_openai_reply("   ")) == ""

    def test_unrecognized_is_none(self):
        assert extract_reply_text(SimpleNamespace(foo="bar")) is None
        assert extract_reply_text(None) is None

    def test_blocked_reply_falls_through(self):
        assert extract_reply_text(_BlockedReply()) is None

    def test_empty_choices(self):
        assert extract_reply_text(SimpleNamespace(choices=[])) is None

    def test_first_non_blank_shape_wins(self):
        reply = SimpleNamespace(
            text="",
            choices=[SimpleNamespace(message=SimpleNamespace(content="fallthrough"))],
        )
        assert extract_reply_text(reply) == "fallthrough"


class TestParseIdList:
    def test_comma_separated(self):
        assert parse_id_list("p1, p2,p3") == ["p1", "p2", "p3"]

    def test_newlines_and_bullets(self):
        assert parse_id_list("- p1\n- p2\n") == ["p1", "p2"]

    def test_quotes_and_brackets(self):
        assert parse_id_list('["p1", "p2"]') == ["p1", "p2"]

    def test_duplicates_keep_first_position(self):
        assert parse_id_list("p2,p1,p2") == ["p2", "p1"]

    def test_empty(self):
        assert parse_id_list("") == []
        assert parse_id_list(" , ,") == []


class TestUnwrapCodeFence:
    def test_json_fence(self):
        assert unwrap_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert unwrap_code_fence('  {"a": 1} ') == '{"a": 1}'


class TestParseSentimentJson:
    def test_valid(self):
        result = parse_sentiment_json('{"sentiment": "positive", "confidence": 0.92}')
        assert result.label is Sentiment.POSITIVE
        assert result.confidence == 0.92

    def test_label_case_insensitive(self):
        result = parse_sentiment_json('{"sentiment": "Negative", "confidence": 1}')
        assert result.label is Sentiment.NEGATIVE
        assert result.confidence == 1.0

    def test_fenced_reply(self):
        result = parse_sentiment_json(
            '```json\n{"sentiment": "neutral", "confidence": 0.5}\n```'
        )
        assert result.label is Sentiment.NEUTRAL

    @pytest.mark.parametrize(
        "raw",
        [
            "The review is positive.",
            '["positive", 0.9]',
            '{"sentiment": "happy", "confidence": 0.9}',
            '{"sentiment": "positive", "confidence": "high"}',
            '{"sentiment": "positive", "confidence": true}',
            '{"sentiment": "positive", "confidence": 1.5}',
            '{"sentiment": "positive"}',
        ],
    )
    def test_malformed_raises(self, raw):
        with pytest.raises(ParseError) as exc_info:
            parse_sentiment_json(raw)
        assert exc_info.value.kind is FailureKind.PARSE
