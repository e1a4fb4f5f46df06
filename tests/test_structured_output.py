from genai_gateway.utils.structured_output import (
    ParseFailure,
    ParsedResult,
    parse_or_default,
    parse_structured,
    strip_code_fences,
)

DIALOGUE = {"dialogue": list}


def test_json_fence_is_stripped() -> None:
    raw = 'Here you go:\n```json\n{"dialogue":[{"message":"hi"}]}\n```\nEnjoy.'
    parsed = parse_structured(raw, DIALOGUE)

    assert isinstance(parsed, ParsedResult)
    assert parsed.complete
    assert parsed.data["dialogue"] == [{"message": "hi"}]


def test_bare_fence_is_stripped() -> None:
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_json_fence_preferred_over_earlier_bare_fence() -> None:
    raw = '```\nnot this\n```\n```json\n{"a": 1}\n```'
    assert strip_code_fences(raw) == '{"a": 1}'


def test_invalid_json_is_a_failure_not_an_exception() -> None:
    parsed = parse_structured("```json\n{dialogue: oops\n```", DIALOGUE)

    assert isinstance(parsed, ParseFailure)
    assert parsed.reason.startswith("invalid json")
    assert parsed.missing == ("dialogue",)


def test_empty_and_none_input() -> None:
    assert isinstance(parse_structured(None), ParseFailure)
    assert parse_structured("   ").reason == "empty"


def test_non_object_payload_is_a_failure() -> None:
    parsed = parse_structured("[1, 2, 3]")
    assert isinstance(parsed, ParseFailure)
    assert "list" in parsed.reason


def test_partial_success_reports_missing_fields() -> None:
    raw = '{"content": "retold", "key_points": "not a list", "themes": ["a"]}'
    parsed = parse_structured(raw, {"content": str, "key_points": list, "themes": list, "keywords": list})

    assert isinstance(parsed, ParsedResult)
    assert not parsed.complete
    assert parsed.missing == ("key_points", "keywords")
    assert "key_points" not in parsed.data
    assert parsed.data["content"] == "retold"


def test_bool_does_not_satisfy_int_field() -> None:
    parsed = parse_structured('{"count": true}', {"count": int})
    assert parsed.missing == ("count",)


def test_list_of_applies_limit() -> None:
    parsed = parse_structured('{"keywords": ["a", "b", "c", "d"]}')
    assert parsed.list_of("keywords", 2) == ["a", "b"]
    assert parsed.list_of("keywords") == ["a", "b", "c", "d"]
    assert parsed.list_of("themes", 3) == []


def test_parse_or_default_replaces_whole_payload_on_failure() -> None:
    default = {"dialogue": [{"message": "canned"}]}
    assert parse_or_default("model said no", DIALOGUE, lambda: default) == default


def test_parse_or_default_fills_only_missing_fields() -> None:
    merged = parse_or_default(
        '{"title": "kept", "dialogue": {}}',
        {"title": str, "dialogue": list},
        lambda: {"title": "ignored", "dialogue": []},
    )
    assert merged == {"title": "kept", "dialogue": []}


def test_fenced_dialogue_equals_bare_json() -> None:
    bare = '{"dialogue": [{"character": "c1", "message": "Hello"}, {"character": "c2", "message": "Hi"}]}'

    assert parse_structured(f"```json\n{bare}\n```", DIALOGUE) == parse_structured(bare, DIALOGUE)
    assert parse_structured(f"```\n{bare}\n```", DIALOGUE) == parse_structured(bare, DIALOGUE)
