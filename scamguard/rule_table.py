"""Default offline rule definitions and per-language rule sets."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .analyzer.rules import Rule, compile_rules
from .analyzer.scorer import OfflineMessages
from .i18n import Translator

logger = logging.getLogger(__name__)

# Evaluation order matters: reasons are reported in this order.
DEFAULT_RULES: list[dict] = [
    {
        "name": "digital_arrest",
        "keywords": ["police", "arrest", "legal", "warrant", "cbi", "cyber crime", "court", "fir"],
        "score": 10,
        "reason_key": "offline.rules.digitalArrest",
        "scam_pattern": "digital_arrest",
    },
    {
        "name": "apk_file",
        "regex": r"\.apk(\s|$)|\.apk\?",
        "flags": "i",
        "score": 10,
        "reason_key": "offline.rules.apkFile",
    },
    {
        "name": "urgent_language",
        "keywords": [
            "urgent",
            "immediate",
            "final warning",
            "action required",
            "account suspended",
            "account blocked",
        ],
        "score": 5,
        "reason_key": "offline.rules.urgentLanguage",
    },
    {
        "name": "money_mule",
        "keywords": ["easy money", "transfer funds", "commission"],
        "score": 5,
        "reason_key": "offline.rules.moneyMule",
    },
    {
        "name": "parcel_scam",
        "keywords": ["parcel", "package", "customs", "illegal items", "delivery failed", "shipment hold"],
        "score": 3,
        "reason_key": "offline.rules.parcelScam",
    },
    {
        "name": "job_offer",
        "keywords": ["job offer", "guaranteed job", "registration fee", "salary advance"],
        "score": 3,
        "reason_key": "offline.rules.jobOffer",
    },
    {
        "name": "esim",
        "keywords": ["esim", "upgrade sim", "activate esim", "sim block"],
        "score": 3,
        "reason_key": "offline.rules.esim",
    },
    {
        "name": "lottery",
        "keywords": ["congratulations", "you have won", "lottery", "prize money", "claim your prize"],
        "score": 3,
        "reason_key": "offline.rules.lottery",
    },
    {
        "name": "otp_like",
        "keywords": ["otp", "one time password", "verification code"],
        "regex": r"\b\d{4,8}\b",
        "score": 3,
        "reason_key": "offline.rules.otpLike",
        "scam_pattern": "otp",
        "match_logic": "AND",
    },
    {
        "name": "biometric",
        "keywords": ["biometric", "face id", "fingerprint access", "verify your identity"],
        "score": 3,
        "reason_key": "offline.rules.biometric",
    },
    {
        "name": "mfa",
        "keywords": ["mfa", "multi-factor", "2fa", "two-factor authentication"],
        "score": 3,
        "reason_key": "offline.rules.mfa",
    },
    {
        "name": "hardware_key",
        "keywords": ["hardware key", "security token", "yubikey"],
        "score": 3,
        "reason_key": "offline.rules.hardwareKey",
    },
    {
        "name": "contains_link",
        "regex": r"https?://[^\s]+",
        "flags": "i",
        "score": 1,
        "reason_key": "offline.rules.containsLink",
    },
]


def build_offline_rules(
    translator: Translator, definitions: Optional[Sequence[dict]] = None
) -> tuple[Rule, ...]:
    """Resolve reasons for the translator's language and compile the rules."""
    return compile_rules(DEFAULT_RULES if definitions is None else definitions, translator.t)


def offline_messages(translator: Translator) -> OfflineMessages:
    return OfflineMessages(
        no_threats=translator.t("offline.noThreats"),
        url_unverified=translator.t("offline.urlUnverified"),
    )


class RuleBook:
    """Holds one compiled rule set per language, built on first use."""

    def __init__(self, translator: Translator, definitions: Optional[Sequence[dict]] = None):
        self.translator = translator
        self.definitions = list(DEFAULT_RULES if definitions is None else definitions)
        self._cache: dict[str, tuple[tuple[Rule, ...], OfflineMessages]] = {}

    def _build(self, language: str) -> tuple[tuple[Rule, ...], OfflineMessages]:
        cached = self._cache.get(language)
        if cached is not None:
            return cached
        # Compile against a translator pinned to the requested language.
        translator = Translator(self.translator.catalogues, language)
        rules = build_offline_rules(translator, self.definitions)
        entry = (rules, offline_messages(translator))
        self._cache[language] = entry
        logger.info("Built %d offline rules for language %s", len(rules), language)
        return entry

    def rules_for(self, language: Optional[str] = None) -> tuple[Rule, ...]:
        return self._build(language or self.translator.language)[0]

    def messages_for(self, language: Optional[str] = None) -> OfflineMessages:
        return self._build(language or self.translator.language)[1]
