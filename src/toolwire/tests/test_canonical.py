"""Tests for canonical argument text and call deduplication keys."""

from __future__ import annotations

import copy

from toolwire import ToolCall, canonicalize, normalize_arguments


def test_key_order_and_whitespace_do_not_matter() -> None:
    first = canonicalize({"b": 1, "a": "x  y"})
    second = canonicalize({"a": "x y", "b": 1})
    assert first == second == '{"a":"x y","b":1}'


def test_keys_ordered_case_insensitively() -> None:
    assert canonicalize({"b": 1, "A": 2, "c": 3}) == '{"A":2,"b":1,"c":3}'


def test_case_ties_break_on_original_key() -> None:
    assert canonicalize({"a": 1, "A": 2}) == '{"A":2,"a":1}'
    assert canonicalize({"A": 2, "a": 1}) == '{"A":2,"a":1}'


def test_nested_values_normalized() -> None:
    args = {"z": {"Y": " hi\tthere ", "x": [" a ", {"B": 1, "a": 2}]}}
    assert canonicalize(args) == '{"z":{"x":["a",{"a":2,"B":1}],"Y":"hi there"}}'


def test_non_string_leaves_untouched() -> None:
    assert canonicalize({"n": 1.5, "t": True, "z": None, "i": 0}) == '{"i":0,"n":1.5,"t":true,"z":null}'


def test_empty_and_missing_arguments() -> None:
    assert canonicalize({}) == "{}"
    assert canonicalize(None) == "{}"


def test_input_never_mutated() -> None:
    args = {"b": [" x ", {"D": " y "}], "a": "p  q"}
    snapshot = copy.deepcopy(args)
    normalize_arguments(args)
    canonicalize(args)
    assert args == snapshot
    assert list(args) == ["b", "a"]


def test_repeated_canonicalization_is_stable() -> None:
    args = {"query": "  weather   in Oslo ", "Days": 3}
    once = canonicalize(args)
    assert canonicalize(args) == once
    assert canonicalize(normalize_arguments(args)) == once  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# ToolCall Integration
# ─────────────────────────────────────────────────────────────────────────────

def test_equivalent_calls_share_dedup_key() -> None:
    first = ToolCall(id="c1", name="Search", arguments={"q": " hello   world", "Lang": "en"})
    second = ToolCall(id="c2", name="search", arguments={"Lang": "en", "q": "hello world"})
    assert first.normalized_arguments() == '{"Lang":"en","q":"hello world"}'
    assert first.dedup_key() == second.dedup_key() == 'search:{"Lang":"en","q":"hello world"}'
    assert first.arguments == {"q": " hello   world", "Lang": "en"}


def test_different_arguments_differ() -> None:
    first = ToolCall(name="search", arguments={"q": "a"})
    second = ToolCall(name="search", arguments={"q": "b"})
    assert first.dedup_key() != second.dedup_key()
