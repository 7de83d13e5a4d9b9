"""Tests for rule compilation and validation."""

import logging
import re

import pytest

from scamguard.analyzer.rules import (
    Rule,
    RuleConfigError,
    compile_rule,
    compile_rules,
    is_inert,
    validate_rules,
)
from scamguard.constants import Combinator, ScamPattern


def test_compile_rule_normalizes_fields():
    rule = compile_rule(
        {
            "name": "otp",
            "keywords": ["OTP", " Verification Code "],
            "regex": r"\b\d{4,8}\b",
            "score": "3",
            "reason": "Contains an OTP",
            "scam_pattern": "OTP",
            "match_logic": "and",
        }
    )
    assert rule.keywords == ("otp", "verification code")
    assert rule.pattern.pattern == r"\b\d{4,8}\b"
    assert rule.score == 3
    assert rule.scam_pattern is ScamPattern.OTP
    assert rule.combinator is Combinator.AND


def test_compile_rule_defaults_to_or_and_unknown():
    rule = compile_rule({"keywords": ["prize"], "score": 3, "reason": "Prize"})
    assert rule.combinator is Combinator.OR
    assert rule.scam_pattern is ScamPattern.UNKNOWN
    assert rule.pattern is None


def test_compile_rule_resolves_reason_key():
    rule = compile_rule(
        {"keywords": ["x"], "score": 1, "reason_key": "offline.rules.x"},
        translate=lambda key: f"<{key}>",
    )
    assert rule.reason == "<offline.rules.x>"


def test_compile_rule_applies_regex_flags():
    rule = compile_rule({"regex": r"\.apk\b", "flags": "i", "score": 10, "reason": "APK"})
    assert rule.pattern.search("download app.APK now")


@pytest.mark.parametrize(
    "entry,message",
    [
        ({"regex": "([", "score": 1, "reason": "bad"}, "Invalid regex"),
        ({"keywords": ["a"], "reason": "no score"}, "integer score"),
        ({"keywords": ["a"], "score": 0, "reason": "zero"}, "positive"),
        ({"keywords": ["a"], "score": 1}, "no reason"),
        ({"keywords": ["a"], "score": 1, "reason": "r", "scam_pattern": "romance"}, "scam_pattern"),
        ({"keywords": ["a"], "score": 1, "reason": "r", "match_logic": "XOR"}, "match_logic"),
        ({"regex": "a", "flags": "q", "score": 1, "reason": "r"}, "regex flag"),
    ],
)
def test_compile_rule_rejects_malformed_entries(entry, message):
    with pytest.raises(RuleConfigError, match=message):
        compile_rule(entry)


def test_compile_rule_rejects_non_mapping():
    with pytest.raises(RuleConfigError):
        compile_rule(["not", "a", "dict"])


def test_inert_rules_are_detected():
    and_without_regex = Rule(score=3, reason="r", keywords=("otp",), combinator=Combinator.AND)
    and_without_keywords = Rule(score=3, reason="r", pattern=re.compile("x"), combinator=Combinator.AND)
    empty_or = Rule(score=3, reason="r")
    live = Rule(score=3, reason="r", keywords=("otp",))

    assert is_inert(and_without_regex)
    assert is_inert(and_without_keywords)
    assert is_inert(empty_or)
    assert not is_inert(live)


def test_validate_rules_names_the_missing_part():
    warnings = validate_rules(
        [
            Rule(score=3, reason="r", keywords=("otp",), combinator=Combinator.AND, name="otp_and"),
            Rule(score=3, reason="r", keywords=("fine",)),
        ]
    )
    assert len(warnings) == 1
    assert "otp_and" in warnings[0]
    assert "regex" in warnings[0]


def test_compile_rules_logs_inert_rules_but_keeps_them(caplog):
    entries = [
        {"name": "half", "keywords": ["otp"], "score": 3, "reason": "r", "match_logic": "AND"},
        {"name": "ok", "keywords": ["prize"], "score": 3, "reason": "r"},
    ]
    with caplog.at_level(logging.WARNING, logger="scamguard.analyzer.rules"):
        rules = compile_rules(entries)
    assert [r.name for r in rules] == ["half", "ok"]
    assert any("half" in rec.getMessage() for rec in caplog.records)


def test_compiled_patterns_are_ascii():
    rule = compile_rule({"regex": r"\b\d{4}\b", "flags": "i", "score": 1, "reason": "digits"})
    assert rule.pattern.flags & re.ASCII
    assert not rule.pattern.search("१२३४")
