"""Text analysis engine for ScamGuard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from ..analyzer.actions import RecommendedAction, recommended_actions
from ..analyzer.remote import DigitalArrestContext, RemoteAnalyzer, RemoteTextAnalysis
from ..analyzer.scorer import OfflineScorer, ScoringResult, Thresholds
from ..constants import (
    HIGH_VALUE_AMOUNT,
    RECENT_OTP_WINDOW_SECONDS,
    ActionType,
    AnalysisMode,
    ScamPattern,
    Sensitivity,
    Surface,
    ThreatLevel,
)
from ..i18n import Translator
from ..rule_table import RuleBook
from ..storage.history import LogEntry

logger = logging.getLogger(__name__)

_SENDER_LABEL_KEYS = {
    ThreatLevel.DANGER: "sender.suspicious",
    ThreatLevel.CAUTION: "sender.unverified",
    ThreatLevel.SAFE: "sender.verified",
}


class EmptyMessageError(ValueError):
    """Raised when asked to analyze a blank message."""


class HistorySink(Protocol):
    async def add_entry(self, source: str, threat_level: ThreatLevel, details: str) -> LogEntry:  # pragma: no cover - interface
        ...

    async def recent_entries(self, since: datetime) -> list[LogEntry]:  # pragma: no cover - interface
        ...


@dataclass
class TextAnalysisResult:
    """Outcome of analyzing one text message (online or offline)."""

    threat_level: ThreatLevel
    analysis_mode: AnalysisMode
    reason: str
    service_name: str
    scam_pattern: ScamPattern = ScamPattern.UNKNOWN
    otp: str = ""
    amount: Optional[float] = None
    url: Optional[str] = None
    is_url_suspicious: bool = False
    url_suspicion_reason: Optional[str] = None
    sender_reputation: str = "unverified"
    sender_label: Optional[str] = None
    digital_arrest_context: Optional[DigitalArrestContext] = None
    recommended_actions: tuple[RecommendedAction, ...] = field(default_factory=tuple)

    # Offline only
    scoring: Optional[ScoringResult] = None

    @property
    def is_suspicious(self) -> bool:
        return self.threat_level is not ThreatLevel.SAFE

    def to_dict(self) -> dict:
        data = {
            "type": Surface.TEXT.value,
            "analysis_mode": self.analysis_mode.value,
            "threat_level": str(self.threat_level),
            "is_suspicious": self.is_suspicious,
            "reason": self.reason,
            "service_name": self.service_name,
            "scam_pattern": self.scam_pattern.value,
            "otp": self.otp,
            "amount": self.amount,
            "url": self.url,
            "is_url_suspicious": self.is_url_suspicious,
            "url_suspicion_reason": self.url_suspicion_reason,
            "sender_reputation": self.sender_reputation,
            "sender_label": self.sender_label,
            "recommended_actions": [a.to_dict() for a in self.recommended_actions],
        }
        if self.scoring is not None:
            data["aggregate_score"] = self.scoring.aggregate_score
            data["reasons"] = list(self.scoring.fired_reasons)
        return data


def format_inr(amount: float) -> str:
    """Format an amount with Indian digit grouping (12,34,567.125)."""
    negative = amount < 0
    whole, _, frac = f"{abs(amount):.3f}".partition(".")
    frac = frac.rstrip("0")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    text = f"{whole}.{frac}" if frac else whole
    return f"-{text}" if negative else text


class TextAnalysisService:
    """Runs remote analysis with an offline fallback and records one log entry."""

    def __init__(
        self,
        *,
        remote: Optional[RemoteAnalyzer],
        rule_book: RuleBook,
        translator: Translator,
        history: HistorySink,
        thresholds: Optional[Thresholds] = None,
        sensitivity: Sensitivity | str = Sensitivity.STANDARD,
        notifier: Optional[Callable[[TextAnalysisResult], None]] = None,
    ):
        self.remote = remote
        self.rule_book = rule_book
        self.translator = translator
        self.history = history
        self.thresholds = thresholds or Thresholds()
        self.sensitivity = Sensitivity(sensitivity)
        self.notifier = notifier
        self._login_failure_pending = False

    def set_sensitivity(self, sensitivity: Sensitivity | str) -> None:
        self.sensitivity = Sensitivity(sensitivity)

    def flag_login_failure(self) -> None:
        """Mark that a failed login was just observed on the user's account."""
        self._login_failure_pending = True

    async def analyze(self, message: str, *, offline: bool = False) -> TextAnalysisResult:
        """Analyze a message, falling back to offline rules if the remote call fails."""
        if not (message or "").strip():
            raise EmptyMessageError("Message is empty")

        if offline or self.remote is None:
            return await self.analyze_offline(message)

        try:
            remote_result = await self.remote.analyze_text(message, self.translator.language)
        except Exception as e:
            logger.warning(f"Remote analysis failed, using offline rules: {e}")
            return await self.analyze_offline(message)

        return await self._finalize_online(remote_result)

    def score_offline(self, message: str) -> ScoringResult:
        language = self.translator.language
        scorer = OfflineScorer(
            self.rule_book.rules_for(language),
            thresholds=self.thresholds,
            messages=self.rule_book.messages_for(language),
        )
        return scorer.score(message, self.sensitivity)

    async def analyze_offline(self, message: str) -> TextAnalysisResult:
        t = self.translator.t
        scoring = self.score_offline(message)
        result = TextAnalysisResult(
            threat_level=scoring.threat_level,
            analysis_mode=AnalysisMode.OFFLINE,
            reason=scoring.reason,
            service_name=t("offline.unknownService"),
            scam_pattern=scoring.dominant_scam_pattern,
            otp=scoring.otp,
            url=scoring.url,
            is_url_suspicious=scoring.is_url_suspicious,
            url_suspicion_reason=scoring.url_suspicion_reason,
            sender_reputation="unverified",
            scoring=scoring,
        )
        result.recommended_actions = recommended_actions(
            result.threat_level, Surface.TEXT, result.scam_pattern, t
        )

        logger.info(
            "Offline analysis: level=%s score=%d rules=%s",
            result.threat_level,
            scoring.aggregate_score,
            ",".join(scoring.fired_rules) or "-",
        )
        await self.history.add_entry(
            t("log.offline.source"), result.threat_level, t("log.offline.details")
        )
        self._notify(result)
        return result

    async def _finalize_online(self, remote: RemoteTextAnalysis) -> TextAnalysisResult:
        t = self.translator.t
        base = dict(
            analysis_mode=AnalysisMode.ONLINE,
            service_name=remote.service_name,
            scam_pattern=remote.scam_pattern,
            otp=remote.otp,
            amount=remote.amount,
            url=remote.url,
            is_url_suspicious=remote.is_url_suspicious,
            url_suspicion_reason=remote.url_suspicion_reason,
            sender_reputation=remote.sender_reputation,
            digital_arrest_context=remote.digital_arrest_context,
        )

        if remote.scam_pattern is ScamPattern.DIGITAL_ARREST:
            result = TextAnalysisResult(threat_level=ThreatLevel.DANGER, reason=remote.reason, **base)
            result.recommended_actions = recommended_actions(
                result.threat_level, Surface.TEXT, result.scam_pattern, t
            )
            await self.history.add_entry(
                remote.service_name or t("log.digitalArrest.source"),
                ThreatLevel.DANGER,
                t("log.digitalArrest.details"),
            )
            self._notify(result)
            return result

        level = ThreatLevel.SAFE
        reasons: list[str] = []

        if remote.is_suspicious:
            level = ThreatLevel.DANGER
            reasons.append(remote.reason)

        if self._login_failure_pending:
            level = ThreatLevel.DANGER
            reasons.append(t("threats.loginFailure"))
            self._login_failure_pending = False

        if remote.amount and remote.amount > HIGH_VALUE_AMOUNT:
            level = ThreatLevel.DANGER
            reasons.append(f"{t('threats.highValue')} ₹{format_inr(remote.amount)}")

        since = datetime.now(timezone.utc) - timedelta(seconds=RECENT_OTP_WINDOW_SECONDS)
        recent_otps = [e for e in await self.history.recent_entries(since) if "OTP" in e.details]
        if recent_otps:
            level = ThreatLevel.DANGER
            reasons.append(t("threats.multipleOtps"))

        if reasons and level is not ThreatLevel.DANGER:
            level = ThreatLevel.CAUTION

        result = TextAnalysisResult(
            threat_level=level,
            reason=" ".join(reasons) or t("threats.standardOtp"),
            sender_label=t(_SENDER_LABEL_KEYS[level]),
            **base,
        )
        result.recommended_actions = recommended_actions(
            result.threat_level, Surface.TEXT, result.scam_pattern, t, supplied=remote.recommended_actions
        )

        logger.info(
            "Online analysis: level=%s service=%s recent_otps=%d",
            result.threat_level,
            result.service_name or "-",
            len(recent_otps),
        )
        await self.history.add_entry(
            result.service_name,
            result.threat_level,
            f"{t('log.otpAnalysis.prefix')}: {result.reason}",
        )
        self._notify(result)
        return result

    def _result_source(self, result: Optional[TextAnalysisResult]) -> str:
        if result is not None and result.service_name:
            return result.service_name
        return self.translator.t("log.lastAnalysis")

    async def record_action(
        self, action: ActionType | str, result: Optional[TextAnalysisResult] = None
    ) -> LogEntry:
        """Log that the user took a recommended action on a result."""
        action = ActionType(action)
        t = self.translator.t
        return await self.history.add_entry(
            t("log.userAction.source"),
            ThreatLevel.SAFE,
            t("log.userAction.details", action=action.value, source=self._result_source(result)),
        )

    async def record_feedback(self, is_correct: bool, result: TextAnalysisResult) -> LogEntry:
        """Log whether the user judged an analysis correct."""
        t = self.translator.t
        correctness = t("feedback.correct") if is_correct else t("feedback.incorrect")
        return await self.history.add_entry(
            t("log.userFeedback.source"),
            ThreatLevel.SAFE,
            t("log.userFeedback.details", source=self._result_source(result), correctness=correctness),
        )

    def _notify(self, result: TextAnalysisResult) -> None:
        if self.notifier is None or result.threat_level is not ThreatLevel.DANGER:
            return
        try:
            self.notifier(result)
        except Exception as e:
            logger.warning(f"Danger notification failed: {e}")
