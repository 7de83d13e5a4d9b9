"""Tests for offline message scoring."""

import re

import pytest

from scamguard.analyzer.rules import Rule
from scamguard.analyzer.scorer import (
    OfflineMessages,
    OfflineScorer,
    ThresholdPair,
    Thresholds,
    extract_otp,
    extract_url,
    score,
)
from scamguard.constants import Combinator, ScamPattern, Sensitivity, ThreatLevel


def kw_rule(keyword: str, points: int, pattern: ScamPattern = ScamPattern.UNKNOWN, name: str = "") -> Rule:
    return Rule(score=points, reason=f"{keyword} reason", keywords=(keyword,), scam_pattern=pattern, name=name)


OTP_AND_RULE = Rule(
    score=3,
    reason="OTP-like",
    keywords=("otp", "verification code"),
    pattern=re.compile(r"\b\d{4,8}\b"),
    scam_pattern=ScamPattern.OTP,
    combinator=Combinator.AND,
    name="otp_like",
)


class TestOfflineScorer:
    """Test offline scoring functionality."""

    def test_empty_text_is_safe(self):
        result = score("", [kw_rule("urgent", 5)])
        assert result.aggregate_score == 0
        assert result.threat_level is ThreatLevel.SAFE
        assert result.fired_reasons == (OfflineMessages().no_threats,)

    def test_empty_rule_list(self):
        result = score("anything at all", [])
        assert result.aggregate_score == 0
        assert result.threat_level is ThreatLevel.SAFE
        assert result.fired_reasons

    def test_keywords_match_case_insensitively(self):
        result = score("URGENT: reply now", [kw_rule("urgent", 5)])
        assert result.aggregate_score == 5
        assert result.fired_reasons == ("urgent reason",)

    def test_pattern_uses_original_case(self):
        rule = Rule(score=4, reason="shouting", pattern=re.compile(r"[A-Z]{5,}"))
        assert score("PLEASE pay", [rule]).aggregate_score == 4
        assert score("please pay", [rule]).aggregate_score == 0

    def test_scores_accumulate_and_reasons_keep_rule_order(self):
        rules = [kw_rule("parcel", 3), kw_rule("urgent", 5), kw_rule("lottery", 3)]
        result = score("Lottery win! Urgent: your parcel is held", rules)
        assert result.aggregate_score == 11
        assert result.fired_reasons == ("parcel reason", "urgent reason", "lottery reason")

    def test_duplicate_reasons_are_collapsed(self):
        rules = [
            Rule(score=2, reason="same", keywords=("alpha",)),
            Rule(score=2, reason="same", keywords=("beta",)),
        ]
        result = score("alpha beta", rules)
        assert result.aggregate_score == 4
        assert result.fired_reasons == ("same",)

    @pytest.mark.parametrize(
        "points,expected",
        [(2, ThreatLevel.SAFE), (3, ThreatLevel.CAUTION), (9, ThreatLevel.CAUTION), (10, ThreatLevel.DANGER)],
    )
    def test_standard_threshold_boundaries(self, points, expected):
        result = score("trigger", [kw_rule("trigger", points)], Sensitivity.STANDARD)
        assert result.aggregate_score == points
        assert result.threat_level is expected

    @pytest.mark.parametrize(
        "points,expected",
        [(1, ThreatLevel.SAFE), (2, ThreatLevel.CAUTION), (7, ThreatLevel.CAUTION), (8, ThreatLevel.DANGER)],
    )
    def test_high_sensitivity_threshold_boundaries(self, points, expected):
        result = score("trigger", [kw_rule("trigger", points)], "high")
        assert result.threat_level is expected

    def test_custom_thresholds(self):
        thresholds = Thresholds(standard=ThresholdPair(danger=4, caution=1))
        result = score("trigger", [kw_rule("trigger", 4)], thresholds=thresholds)
        assert result.threat_level is ThreatLevel.DANGER

    def test_digital_arrest_wins_regardless_of_order(self):
        arrest = kw_rule("police", 10, ScamPattern.DIGITAL_ARREST)
        otp = kw_rule("code", 3, ScamPattern.OTP)
        text = "police need your code"
        assert score(text, [otp, arrest]).dominant_scam_pattern is ScamPattern.DIGITAL_ARREST
        assert score(text, [arrest, otp]).dominant_scam_pattern is ScamPattern.DIGITAL_ARREST

    def test_first_non_unknown_pattern_wins(self):
        rules = [
            kw_rule("hello", 1, ScamPattern.UNKNOWN),
            kw_rule("code", 1, ScamPattern.OTP),
        ]
        assert score("hello code", rules).dominant_scam_pattern is ScamPattern.OTP
        assert score("hello", rules).dominant_scam_pattern is ScamPattern.UNKNOWN

    def test_and_rule_needs_keyword_and_digits(self):
        assert score("Your OTP is 482910", [OTP_AND_RULE]).aggregate_score == 3
        assert score("Your OTP is ready", [OTP_AND_RULE]).aggregate_score == 0
        assert score("Call 482910 now", [OTP_AND_RULE]).aggregate_score == 0

    def test_and_rule_without_pattern_never_fires(self):
        rule = Rule(score=5, reason="inert", keywords=("otp",), combinator=Combinator.AND)
        assert score("otp 1234", [rule]).aggregate_score == 0

    def test_or_rule_with_keywords_and_pattern(self):
        rule = Rule(score=2, reason="either", keywords=("refund",), pattern=re.compile(r"\$\d+"))
        assert score("refund pending", [rule]).aggregate_score == 2
        assert score("pay $50", [rule]).aggregate_score == 2
        assert score("nothing here", [rule]).aggregate_score == 0

    def test_adding_a_firing_rule_never_lowers_the_result(self):
        text = "urgent parcel held at customs"
        base_rules = [kw_rule("parcel", 3)]
        before = score(text, base_rules)
        after = score(text, base_rules + [kw_rule("urgent", 5)])
        assert after.aggregate_score >= before.aggregate_score
        assert after.threat_level >= before.threat_level

    def test_scoring_is_repeatable(self, default_rules):
        text = "URGENT: police case filed. Pay at https://bit.ly/x"
        assert score(text, default_rules) == score(text, default_rules)

    def test_fired_rule_names_are_reported(self):
        result = score("urgent", [kw_rule("urgent", 5, name="urgent_language")])
        assert result.fired_rules == ("urgent_language",)


class TestExtraction:
    """Test OTP and URL extraction."""

    def test_otp_extraction(self):
        result = score("Your OTP is 482910, do not share", [])
        assert result.otp == "482910"

    def test_otp_ignores_long_digit_runs(self):
        assert extract_otp("Account 1234567890123") == ""
        assert extract_otp("code 123") == ""

    def test_otp_ignores_non_ascii_digits(self):
        assert extract_otp("OTP १२३४५६") == ""

    def test_otp_next_to_non_latin_letters(self):
        assert extract_otp("OTP कोड482910") == "482910"

    def test_first_url_is_extracted(self):
        assert extract_url("go to http://a.example/x then https://b.example") == "http://a.example/x"
        assert extract_url("no links here") is None

    def test_url_marks_unverified_even_without_rules(self):
        result = score("Visit https://secure-login.example.com/verify now", [])
        assert result.url == "https://secure-login.example.com/verify"
        assert result.is_url_suspicious
        assert result.url_suspicion_reason == OfflineMessages().url_unverified
        assert result.threat_level is ThreatLevel.SAFE

    def test_url_domain_uses_registered_domain(self):
        result = score("see https://login.bank.co.uk/reset", [])
        assert result.url_domain == "bank.co.uk"

    def test_no_url_fields_when_absent(self):
        result = score("plain text", [])
        assert result.url is None
        assert result.url_domain is None
        assert not result.is_url_suspicious
        assert result.url_suspicion_reason is None


class TestScorerClass:
    def test_offline_scorer_uses_its_configuration(self):
        messages = OfflineMessages(no_threats="nada", url_unverified="?")
        scorer = OfflineScorer([kw_rule("trigger", 2)], messages=messages)
        assert scorer.score("quiet").fired_reasons == ("nada",)
        assert scorer.score("trigger", Sensitivity.HIGH).threat_level is ThreatLevel.CAUTION

    def test_to_dict(self):
        data = score("Your OTP is 482910", [OTP_AND_RULE]).to_dict()
        assert data["threat_level"] == "caution"
        assert data["scam_pattern"] == "otp"
        assert data["otp"] == "482910"
        assert data["reasons"] == ["OTP-like"]
