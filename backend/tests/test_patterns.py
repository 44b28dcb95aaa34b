"""
Unit tests for wildcard bucket name matching.
"""
import pytest

from app.services.discovery.patterns import compile_pattern, matches


@pytest.mark.parametrize("name", ["", "a", "prod-logs", "with space", "ünïcode", "a.b*c?"])
def test_match_all_patterns(name):
    """Empty pattern and "*" match every name."""
    assert matches(name, "*") is True
    assert matches(name, "") is True


def test_star_matches_any_sequence():
    assert matches("prod-logs", "prod-*") is True
    assert matches("prod-", "prod-*") is True
    assert matches("dev-logs", "prod-*") is False


def test_question_mark_matches_exactly_one_character():
    assert matches("a1b", "a?b") is True
    assert matches("ab", "a?b") is False
    assert matches("a12b", "a?b") is False


def test_match_is_anchored_at_both_ends():
    """Partial matches do not count."""
    assert matches("my-prod-logs", "prod-*") is False
    assert matches("prod-logs-old", "*-logs") is False
    assert matches("logs", "log") is False


def test_wildcards_combine():
    assert matches("prod-eu-1-logs", "prod-??-?-*") is True
    assert matches("prod-eu-logs", "prod-??-?-*") is False
    assert matches("backup-2024-01", "*-20??-*") is True


def test_regex_metacharacters_are_literal():
    """Characters like + ( ) . [ ] are matched literally."""
    assert matches("a+b", "a+b") is True
    assert matches("aab", "a+b") is False
    assert matches("data.v1", "data.v1") is True
    assert matches("dataXv1", "data.v1") is False
    assert matches("logs(old)", "logs(old)") is True
    assert matches("logs[1]", "logs[*]") is True
    assert matches("logs1", "logs[*]") is False
    assert matches("price$", "price$") is True


def test_unbalanced_characters_do_not_raise():
    """Patterns that would be invalid regexes still evaluate."""
    assert matches("a(b", "a(b") is True
    assert matches("a[b", "a[*") is True
    assert matches("x", "(") is False


def test_non_string_name_is_excluded():
    """Evaluation errors degrade to a non-match, never a match."""
    assert matches(None, "prod-*") is False


def test_compiled_pattern_is_reused():
    assert compile_pattern("prod-*") is compile_pattern("prod-*")


def test_star_spans_newlines():
    assert matches("a\nb", "a*b") is True
