"""Unit tests for the response parser

Tests cover:
- Markdown fence stripping (with and without json tag)
- Invalid JSON
- Missing / empty / non-array groups
- Group entries without an array-typed tabIds
"""

from __future__ import annotations

import json

import pytest

from tabgrouper.grouping.errors import InvalidJson, MissingGroups
from tabgrouper.grouping.parser import parse_group_response, strip_code_fences
from tabgrouper.observability.telemetry import _COUNTERS

PAYLOAD = {"groups": [{"name": "Dev", "color": "blue", "tabIds": [1, 2]}]}


def _dump(candidate):
    return candidate.model_dump(by_alias=True)


def test_plain_json_parses():
    candidate = parse_group_response(json.dumps(PAYLOAD))

    assert len(candidate.groups) == 1
    assert candidate.groups[0].tab_ids == [1, 2]
    assert candidate.groups[0].name == "Dev"


def test_fenced_json_parses_identically():
    fenced = f"```json\n{json.dumps(PAYLOAD)}\n```"

    assert _dump(parse_group_response(fenced)) == _dump(parse_group_response(json.dumps(PAYLOAD)))


def test_untagged_fence_and_surrounding_whitespace():
    fenced = f"\n  ```\n{json.dumps(PAYLOAD, indent=2)}\n```  \n"

    assert parse_group_response(fenced).groups[0].color == "blue"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("```json\n{}\n```", "{}"),
        ("```\n[]\n```", "[]"),
        ('{"a": 1}', '{"a": 1}'),
        ("```json{}```", "{}"),
    ],
)
def test_strip_code_fences(raw, expected):
    assert strip_code_fences(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "Here are your groups!",
        '{"groups": [',
        "```json\n{groups: []}\n```",
        "",
    ],
)
def test_invalid_json(raw):
    with pytest.raises(InvalidJson) as exc_info:
        parse_group_response(raw)

    assert exc_info.value.message == "AI returned invalid JSON. Try again."
    assert _COUNTERS["groups.parse.invalid_json"] == 1


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"groups": []},
        {"groups": {"name": "Dev"}},
        {"groups": None},
        {"clusters": [{"name": "Dev", "color": "blue", "tabIds": [1]}]},
        [{"name": "Dev", "color": "blue", "tabIds": [1]}],
        "groups",
    ],
)
def test_missing_groups(payload):
    with pytest.raises(MissingGroups) as exc_info:
        parse_group_response(json.dumps(payload))

    assert exc_info.value.message == "Response missing groups. Try again."


@pytest.mark.parametrize(
    "group",
    [
        {"name": "Dev", "color": "blue"},
        {"name": "Dev", "color": "blue", "tabIds": "1,2"},
        {"name": "Dev", "color": "blue", "tabIds": {"1": True}},
        "Dev",
        None,
    ],
)
def test_group_without_tab_id_array_is_invalid(group):
    with pytest.raises(InvalidJson):
        parse_group_response(json.dumps({"groups": [group]}))


def test_values_are_left_unchecked():
    raw = json.dumps({"groups": [{"name": None, "color": "magenta", "tabIds": ["x", 9.5]}]})

    candidate = parse_group_response(raw)

    assert candidate.groups[0].color == "magenta"
    assert candidate.groups[0].tab_ids == ["x", 9.5]


def test_extra_fields_are_ignored():
    raw = json.dumps(
        {"groups": [{"name": "Dev", "color": "blue", "tabIds": [1], "reason": "code"}], "note": "hi"}
    )

    assert parse_group_response(raw).groups[0].name == "Dev"
