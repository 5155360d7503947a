"""
Unit tests for llm_extractor.py and completion_client.py

The completion capability is replaced by a canned-reply double; no network.
"""

import json
from datetime import date
from types import SimpleNamespace

import pytest

from conftest import FakeCompletion
from floattracker.core.errors import ParseError, ServiceError
from floattracker.services.extraction.completion_client import CompletionClient
from floattracker.services.extraction.llm_extractor import (
    LLM_PRECEDENCE,
    LLMExtractor,
    build_prompt,
    load_json_object,
    normalize_action_type,
    normalize_split_ratio,
    parse_extraction_payload,
)


REPLY = {
    "outstanding_shares": 52000000,
    "float_shares": 40000000,
    "public_float_usd": 300000000.0,
    "public_float_date": "2023-06-30",
    "corporate_actions": [
        {
            "action_type": "reverse_split",
            "action_date": "2023-05-05",
            "description": "1-for-10 reverse split",
            "shares_before": 520000000,
            "shares_after": 52000000,
            "split_ratio": "1:10",
            "impact_description": "Float reduced tenfold",
        }
    ],
}


# Reply cleanup
def test_load_json_object_strips_code_fences():
    content = "```json\n" + json.dumps(REPLY) + "\n```"
    assert load_json_object(content)["outstanding_shares"] == 52000000


def test_load_json_object_tolerates_chatter():
    content = "Here is the data you asked for:\n" + json.dumps({"float_shares": 5}) + "\nLet me know!"
    assert load_json_object(content) == {"float_shares": 5}


@pytest.mark.parametrize("content", ["", "no json here", "[1, 2, 3]", "{not: valid}"])
def test_load_json_object_rejects_non_objects(content):
    with pytest.raises(ParseError):
        load_json_object(content)


# Field validation
def test_parse_payload_full_record():
    record = parse_extraction_payload(json.dumps(REPLY))

    assert record.outstanding_shares == 52_000_000
    assert record.float_shares == 40_000_000
    assert record.public_float_usd == 300_000_000.0
    assert record.public_float_date == date(2023, 6, 30)
    assert len(record.corporate_actions) == 1
    action = record.corporate_actions[0]
    assert action.action_type == "reverse_split"
    assert action.action_date == date(2023, 5, 5)
    assert action.split_ratio == "1-for-10"
    assert action.shares_before == 520_000_000


def test_parse_payload_wrong_types_become_none():
    content = json.dumps({
        "outstanding_shares": "about forty million",
        "float_shares": True,
        "public_float_usd": -5,
        "public_float_date": "sometime in 2023",
        "corporate_actions": "none",
    })
    record = parse_extraction_payload(content)

    assert record.outstanding_shares is None
    assert record.float_shares is None
    assert record.public_float_usd is None
    assert record.public_float_date is None
    # not a list: the extractor reports no action list at all
    assert record.corporate_actions is None


def test_parse_payload_numeric_strings_accepted():
    record = parse_extraction_payload(json.dumps({"outstanding_shares": "48,000,000"}))
    assert record.outstanding_shares == 48_000_000


def test_parse_payload_zero_is_a_value():
    record = parse_extraction_payload(json.dumps({"float_shares": 0, "corporate_actions": []}))
    assert record.float_shares == 0
    assert record.corporate_actions == []


def test_normalize_action_type():
    assert normalize_action_type("Reverse Split") == "reverse_split"
    assert normalize_action_type("warrant-exercise") == "warrant_exercise"
    assert normalize_action_type("merger") == "other"
    assert normalize_action_type(None) == "other"


@pytest.mark.parametrize("raw, expected", [
    ("2:1", "2-for-1"),
    ("2 for 1", "2-for-1"),
    ("1-for-10", "1-for-10"),
    ("ten to one", None),
    (None, None),
])
def test_normalize_split_ratio(raw, expected):
    assert normalize_split_ratio(raw) == expected


def test_bad_action_entries_are_skipped_and_dated_later():
    content = json.dumps({"corporate_actions": ["junk", {"action_type": "offering", "action_date": "n/a"}]})
    record = parse_extraction_payload(content)
    assert len(record.corporate_actions) == 1
    assert record.corporate_actions[0].action_type == "offering"
    assert record.corporate_actions[0].action_date is None
    assert record.corporate_actions[0].description == ""


# Extractor
def test_prompt_carries_filing_type_and_excerpt():
    prompt = build_prompt("10-K", "EXCERPT TEXT")
    assert "SEC 10-K filing" in prompt
    assert "EXCERPT TEXT" in prompt
    assert '"public_float_usd"' in prompt


def test_extractor_success():
    completion = FakeCompletion(reply="```json\n" + json.dumps(REPLY) + "\n```")
    result = LLMExtractor(completion).extract("10-K", "some excerpt")

    assert result.precedence == LLM_PRECEDENCE
    assert result.error is None
    assert result.record.outstanding_shares == 52_000_000
    assert len(completion.calls) == 1


def test_extractor_service_error_is_returned_not_raised():
    completion = FakeCompletion(error=ServiceError("401 Unauthorized"))
    result = LLMExtractor(completion).extract("10-K", "some excerpt")

    assert result.record is None
    assert isinstance(result.error, ServiceError)


def test_extractor_parse_error_is_returned_not_raised():
    result = LLMExtractor(FakeCompletion(reply="I could not find anything.")).extract("10-Q", "excerpt")
    assert result.record is None
    assert isinstance(result.error, ParseError)


def test_extractor_skips_empty_excerpt():
    completion = FakeCompletion(reply=json.dumps(REPLY))
    result = LLMExtractor(completion).extract("10-K", "")

    assert result.record is None
    assert result.error is None
    assert completion.calls == []


# Completion client
def test_completion_client_requires_key():
    client = CompletionClient(api_key="")
    with pytest.raises(ServiceError):
        client.complete("prompt", "system")


def test_completion_client_returns_message_content():
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        message = SimpleNamespace(content='{"float_shares": 1}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    client = CompletionClient(api_key="", model="test-model", client=fake)

    assert client.complete("prompt", "system") == '{"float_shares": 1}'
    assert captured["model"] == "test-model"
    assert captured["messages"][0] == {"role": "system", "content": "system"}
    assert captured["messages"][1] == {"role": "user", "content": "prompt"}
    assert captured["response_format"] == {"type": "json_object"}


def test_completion_client_json_mode_can_be_disabled():
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="{}"))])

    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    CompletionClient(api_key="k", json_mode=False, client=fake).complete("prompt", "system")

    assert "response_format" not in captured


def test_completion_client_no_choices():
    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(
        create=lambda **kwargs: SimpleNamespace(choices=[])
    )))
    with pytest.raises(ServiceError):
        CompletionClient(api_key="k", client=fake).complete("prompt", "system")
