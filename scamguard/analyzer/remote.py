"""
Remote text analysis client.

The remote analyzer is an opaque HTTP service that returns a structured JSON
analysis of a message. Any failure (network, quota, bad status, malformed
payload) surfaces as RemoteAnalysisError so callers can fall back to the
offline scorer.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

import aiohttp

from ..constants import FUND_TRANSFER_URGENCIES, SENDER_REPUTATIONS, ActionType, ScamPattern
from .actions import ACTION_PRIORITIES, RecommendedAction

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "isSuspicious",
    "reason",
    "serviceName",
    "otp",
    "scamPattern",
    "isUrlSuspicious",
    "senderReputation",
)


class RemoteAnalysisError(Exception):
    """The remote analyzer could not produce a usable analysis."""


@dataclass
class DigitalArrestContext:
    """Details the remote analyzer reports for digital arrest attempts."""
    is_user_isolated: bool = False
    fund_transfer_urgency: str = "none"  # none, high, critical
    matches_known_scam_pattern: bool = False
    isolation_tactics: List[str] = field(default_factory=list)
    requested_amount: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DigitalArrestContext":
        urgency = str(data.get("fundTransferUrgency") or "none")
        if urgency not in FUND_TRANSFER_URGENCIES:
            raise RemoteAnalysisError(f"Unknown fundTransferUrgency: {urgency!r}")
        amount = data.get("requestedAmount")
        return cls(
            is_user_isolated=bool(data.get("isUserIsolated")),
            fund_transfer_urgency=urgency,
            matches_known_scam_pattern=bool(data.get("matchesKnownScamPattern")),
            isolation_tactics=[str(t) for t in data.get("isolationTactics") or []],
            requested_amount=float(amount) if amount is not None else None,
        )


def _parse_actions(raw: Any) -> tuple[RecommendedAction, ...]:
    """Convert the optional recommendedActions list."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise RemoteAnalysisError("recommendedActions must be a list")
    actions = []
    for item in raw:
        if not isinstance(item, dict):
            raise RemoteAnalysisError(f"Invalid recommended action: {item!r}")
        try:
            action = ActionType(str(item.get("action")))
        except ValueError:
            raise RemoteAnalysisError(f"Unknown recommended action: {item.get('action')!r}") from None
        priority = str(item.get("priority") or "MEDIUM").upper()
        if priority not in ACTION_PRIORITIES:
            raise RemoteAnalysisError(f"Unknown action priority: {priority!r}")
        label = str(item.get("label") or item.get("description") or action.value)
        actions.append(RecommendedAction(action=action, label=label, priority=priority))
    return tuple(actions)


@dataclass
class RemoteTextAnalysis:
    """Structured analysis returned by the remote analyzer."""
    is_suspicious: bool
    reason: str
    service_name: str
    otp: str = ""
    amount: Optional[float] = None
    scam_pattern: ScamPattern = ScamPattern.UNKNOWN
    url: Optional[str] = None
    is_url_suspicious: bool = False
    url_suspicion_reason: Optional[str] = None
    sender_reputation: str = "unverified"
    digital_arrest_context: Optional[DigitalArrestContext] = None
    recommended_actions: tuple[RecommendedAction, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "RemoteTextAnalysis":
        """Validate and convert a camelCase JSON payload."""
        if not isinstance(data, dict):
            raise RemoteAnalysisError("Remote analysis payload is not a JSON object")
        missing = [key for key in REQUIRED_FIELDS if key not in data]
        if missing:
            raise RemoteAnalysisError(f"Remote analysis missing fields: {', '.join(missing)}")

        try:
            scam_pattern = ScamPattern(str(data["scamPattern"]))
        except ValueError:
            raise RemoteAnalysisError(f"Unknown scamPattern: {data['scamPattern']!r}") from None

        reputation = str(data["senderReputation"])
        if reputation not in SENDER_REPUTATIONS:
            raise RemoteAnalysisError(f"Unknown senderReputation: {reputation!r}")

        amount = data.get("amount")
        try:
            amount = float(amount) if amount is not None else None
        except (TypeError, ValueError):
            raise RemoteAnalysisError(f"Invalid amount: {amount!r}") from None

        context_raw = data.get("digitalArrestContext")
        context = None
        if isinstance(context_raw, dict):
            context = DigitalArrestContext.from_dict(context_raw)

        return cls(
            is_suspicious=bool(data["isSuspicious"]),
            reason=str(data.get("reason") or ""),
            service_name=str(data.get("serviceName") or ""),
            otp=str(data.get("otp") or ""),
            amount=amount,
            scam_pattern=scam_pattern,
            url=data.get("url") or None,
            is_url_suspicious=bool(data.get("isUrlSuspicious")),
            url_suspicion_reason=data.get("urlSuspicionReason") or None,
            sender_reputation=reputation,
            digital_arrest_context=context,
            recommended_actions=_parse_actions(data.get("recommendedActions")),
        )


class RemoteAnalyzer(Protocol):
    """Interface for remote text analyzers."""

    async def analyze_text(self, message: str, language: str) -> RemoteTextAnalysis:  # pragma: no cover - interface
        ...


class HttpRemoteAnalyzer:
    """
    Posts messages to a JSON analysis endpoint.

    Request body: {"message": ..., "language": ...}
    Response body: the camelCase analysis object parsed by RemoteTextAnalysis.
    """

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 15.0,
    ):
        self.endpoint = (endpoint or "").strip()
        self.api_key = api_key
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.endpoint)

    async def analyze_text(self, message: str, language: str) -> RemoteTextAnalysis:
        if not self.configured:
            raise RemoteAnalysisError("Remote analyzer endpoint is not configured")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {"message": message, "language": language}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint,
                    headers=headers,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as resp:
                    if resp.status == 429:
                        raise RemoteAnalysisError("Remote analyzer quota exceeded (HTTP 429)")
                    if resp.status != 200:
                        body = await resp.text()
                        raise RemoteAnalysisError(
                            f"Remote analyzer returned HTTP {resp.status}: {body[:200]}"
                        )
                    try:
                        data = await resp.json()
                    except (aiohttp.ContentTypeError, ValueError, TypeError) as exc:
                        raise RemoteAnalysisError(f"Remote analyzer returned invalid JSON: {exc}") from exc
        except RemoteAnalysisError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteAnalysisError(f"Remote analyzer request failed: {exc}") from exc

        result = RemoteTextAnalysis.from_dict(data)
        logger.debug(
            "Remote analysis: suspicious=%s pattern=%s", result.is_suspicious, result.scam_pattern.value
        )
        return result
