"""Localization lookup for ScamGuard strings."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "es", "hi")
FALLBACK_LANGUAGE = "en"

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_CATALOGUES: dict[str, dict[str, Any]] = {
    "en": {
        "offline": {
            "noThreats": "No specific threats detected by offline analysis.",
            "unknownService": "Unknown Service",
            "urlUnverified": "This message contains a link that cannot be verified offline. Be careful.",
            "rules": {
                "digitalArrest": "Mentions police, arrest or legal action, a common digital arrest tactic.",
                "apkFile": "Contains a link to an APK file, which may install malware.",
                "urgentLanguage": "Uses urgent or threatening language.",
                "moneyMule": "Offers easy money or asks you to move funds (possible money mule scheme).",
                "parcelScam": "Mentions a parcel or customs problem, a common delivery scam.",
                "jobOffer": "Promises a job or asks for a registration fee.",
                "esim": "Asks you to upgrade or activate an eSIM (possible SIM swap).",
                "lottery": "Claims you have won a prize or lottery.",
                "otpLike": "Contains a one-time password. Never share it with anyone.",
                "biometric": "Asks for biometric or identity verification.",
                "mfa": "Mentions multi-factor authentication codes or settings.",
                "hardwareKey": "Mentions a hardware security key or token.",
                "containsLink": "Contains a link.",
            },
        },
        "actions": {
            "block": "Block",
            "verify": "Verify with Service",
            "proceedCautiously": "Proceed with Caution",
            "proceed": "Proceed",
            "contactPolice": "Contact Police (1930)",
            "blockSender": "Block Sender",
            "deleteImage": "Delete Image",
            "blockUrl": "Block URL",
        },
        "threats": {
            "loginFailure": "A recent failed login attempt was reported on your account.",
            "highValue": "High-value transaction detected:",
            "multipleOtps": "Multiple OTPs received in a short time.",
            "standardOtp": "Standard OTP message.",
        },
        "log": {
            "offline": {
                "source": "Offline Analysis",
                "details": "Analyzed with offline rules (AI service unavailable).",
            },
            "digitalArrest": {
                "source": "Digital Arrest Attempt",
                "details": "Potential digital arrest scam detected.",
            },
            "otpAnalysis": {"prefix": "OTP Analysis"},
            "userAction": {
                "source": "User Action",
                "details": "Took action '{{action}}' on the result from {{source}}.",
            },
            "userFeedback": {
                "source": "User Feedback",
                "details": "Marked the analysis of {{source}} as {{correctness}}.",
            },
            "lastAnalysis": "Last Analysis",
        },
        "feedback": {
            "correct": "correct",
            "incorrect": "incorrect",
        },
        "sender": {
            "verified": "Verified Sender",
            "unverified": "Unverified Sender",
            "suspicious": "Suspicious Sender",
        },
    },
}


def _lookup(catalogue: Mapping[str, Any] | None, keys: list[str]) -> Optional[Any]:
    result: Any = catalogue
    for key in keys:
        if not isinstance(result, Mapping) or key not in result:
            return None
        result = result[key]
    return result


class Translator:
    """Resolves dotted keys against per-language catalogues.

    Missing keys fall back to English, then to the key itself. ``{{name}}``
    placeholders are replaced by keyword arguments; unknown placeholders are
    left untouched.
    """

    def __init__(
        self,
        catalogues: Mapping[str, Mapping[str, Any]] | None = None,
        language: str = FALLBACK_LANGUAGE,
    ):
        self.catalogues = dict(catalogues if catalogues is not None else DEFAULT_CATALOGUES)
        self.language = FALLBACK_LANGUAGE
        self.set_language(language)

    def set_language(self, language: str) -> None:
        language = (language or "").strip().lower()
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        self.language = language

    def t(self, key: str, **values: Any) -> str:
        keys = key.split(".")
        result = _lookup(self.catalogues.get(self.language), keys)
        if not isinstance(result, str):
            result = _lookup(self.catalogues.get(FALLBACK_LANGUAGE), keys)
        if not isinstance(result, str):
            logger.debug("Missing translation for %s (%s)", key, self.language)
            return key

        if values:
            def _replace(match: re.Match) -> str:
                name = match.group(1)
                return str(values[name]) if name in values else match.group(0)

            result = _PLACEHOLDER_RE.sub(_replace, result)
        return result

    __call__ = t
