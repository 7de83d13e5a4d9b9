"""Offline message scoring for scam detection."""

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

import tldextract

from ..constants import ScamPattern, Sensitivity, ThreatLevel
from .rules import Rule

OTP_RE = re.compile(r"\b(\d{4,8})\b", re.ASCII)
URL_RE = re.compile(r"https?://[^\s]+", re.I)

# Bundled public suffix snapshot only; the scorer must not touch the network.
_DOMAIN_EXTRACT = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())


@dataclass(frozen=True)
class ThresholdPair:
    danger: int
    caution: int


@dataclass(frozen=True)
class Thresholds:
    """Score thresholds per sensitivity level."""

    standard: ThresholdPair = ThresholdPair(danger=10, caution=3)
    high: ThresholdPair = ThresholdPair(danger=8, caution=2)

    def for_sensitivity(self, sensitivity: Sensitivity | str) -> ThresholdPair:
        if Sensitivity(sensitivity) is Sensitivity.HIGH:
            return self.high
        return self.standard

    def classify(self, score: int, sensitivity: Sensitivity | str) -> ThreatLevel:
        pair = self.for_sensitivity(sensitivity)
        if score >= pair.danger:
            return ThreatLevel.DANGER
        if score >= pair.caution:
            return ThreatLevel.CAUTION
        return ThreatLevel.SAFE


@dataclass(frozen=True)
class OfflineMessages:
    """Localized strings the scorer emits on its own."""

    no_threats: str = "No specific threats detected by offline analysis."
    url_unverified: str = "This message contains a link that cannot be verified offline. Be careful."


DEFAULT_THRESHOLDS = Thresholds()
DEFAULT_MESSAGES = OfflineMessages()


@dataclass(frozen=True)
class ScoringResult:
    """Result of offline message scoring."""

    aggregate_score: int
    fired_reasons: tuple[str, ...]
    dominant_scam_pattern: ScamPattern
    threat_level: ThreatLevel
    otp: str = ""
    url: Optional[str] = None
    url_domain: Optional[str] = None
    is_url_suspicious: bool = False
    url_suspicion_reason: Optional[str] = None
    fired_rules: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_suspicious(self) -> bool:
        return self.threat_level is not ThreatLevel.SAFE

    @property
    def reason(self) -> str:
        """Fired reasons as one sentence block."""
        return " ".join(self.fired_reasons)

    def to_dict(self) -> dict:
        return {
            "aggregate_score": self.aggregate_score,
            "threat_level": str(self.threat_level),
            "reasons": list(self.fired_reasons),
            "scam_pattern": self.dominant_scam_pattern.value,
            "otp": self.otp,
            "url": self.url,
            "url_domain": self.url_domain,
            "is_url_suspicious": self.is_url_suspicious,
            "url_suspicion_reason": self.url_suspicion_reason,
            "fired_rules": list(self.fired_rules),
        }


def extract_otp(text: str) -> str:
    """First standalone run of 4-8 digits, or an empty string."""
    match = OTP_RE.search(text)
    return match.group(0) if match else ""


def extract_url(text: str) -> Optional[str]:
    """First http(s):// token up to the next whitespace."""
    match = URL_RE.search(text)
    return match.group(0) if match else None


def registered_domain(url: str) -> Optional[str]:
    """Registered domain (e.g. example.co.uk) of a URL, if it has one."""
    extracted = _DOMAIN_EXTRACT(url)
    if not extracted.domain:
        return None
    if not extracted.suffix:
        return extracted.domain.lower()
    return f"{extracted.domain}.{extracted.suffix}".lower()


def score(
    text: str,
    rules: Sequence[Rule],
    sensitivity: Sensitivity | str = Sensitivity.STANDARD,
    *,
    thresholds: Thresholds | None = None,
    messages: OfflineMessages | None = None,
) -> ScoringResult:
    """Score a message against rules without any network access."""
    thresholds = thresholds or DEFAULT_THRESHOLDS
    messages = messages or DEFAULT_MESSAGES
    text = text or ""
    lowered = text.lower()

    total = 0
    reasons: dict[str, None] = {}
    fired: list[str] = []
    scam_pattern = ScamPattern.UNKNOWN

    for rule in rules:
        if not rule.fires(text, lowered):
            continue
        total += rule.score
        reasons.setdefault(rule.reason, None)
        if rule.name:
            fired.append(rule.name)
        # digital_arrest always wins; anything else only fills an unknown slot
        if rule.scam_pattern is ScamPattern.DIGITAL_ARREST:
            scam_pattern = ScamPattern.DIGITAL_ARREST
        elif scam_pattern is ScamPattern.UNKNOWN and rule.scam_pattern is not ScamPattern.UNKNOWN:
            scam_pattern = rule.scam_pattern

    fired_reasons = tuple(reasons) or (messages.no_threats,)

    url = extract_url(text)
    return ScoringResult(
        aggregate_score=total,
        fired_reasons=fired_reasons,
        dominant_scam_pattern=scam_pattern,
        threat_level=thresholds.classify(total, sensitivity),
        otp=extract_otp(text),
        url=url,
        url_domain=registered_domain(url) if url else None,
        is_url_suspicious=url is not None,
        url_suspicion_reason=messages.url_unverified if url else None,
        fired_rules=tuple(fired),
    )


class OfflineScorer:
    """Scores messages against a fixed rule set and threshold configuration."""

    def __init__(
        self,
        rules: Sequence[Rule],
        thresholds: Thresholds | None = None,
        messages: OfflineMessages | None = None,
    ):
        self.rules = tuple(rules)
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self.messages = messages or DEFAULT_MESSAGES

    def score(self, text: str, sensitivity: Sensitivity | str = Sensitivity.STANDARD) -> ScoringResult:
        return score(
            text,
            self.rules,
            sensitivity,
            thresholds=self.thresholds,
            messages=self.messages,
        )
