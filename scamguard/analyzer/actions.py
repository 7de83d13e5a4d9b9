"""Recommended user actions for an analysis outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..constants import ActionType, ScamPattern, Surface, ThreatLevel


ACTION_PRIORITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")


@dataclass(frozen=True)
class RecommendedAction:
    action: ActionType
    label: str
    priority: str = "MEDIUM"  # CRITICAL | HIGH | MEDIUM | LOW

    def to_dict(self) -> dict:
        return {"action": self.action.value, "label": self.label, "priority": self.priority}


# (action, label key, priority)
_DEFAULT_ACTIONS: dict[ThreatLevel, list[tuple[ActionType, str, str]]] = {
    ThreatLevel.DANGER: [(ActionType.BLOCK, "actions.block", "CRITICAL")],
    ThreatLevel.CAUTION: [
        (ActionType.VERIFY, "actions.verify", "HIGH"),
        (ActionType.PROCEED, "actions.proceedCautiously", "LOW"),
    ],
    ThreatLevel.SAFE: [(ActionType.PROCEED, "actions.proceed", "LOW")],
}

_DIGITAL_ARREST_ACTIONS = [
    (ActionType.CONTACT_SUPPORT, "actions.contactPolice", "CRITICAL"),
    (ActionType.BLOCK, "actions.blockSender", "CRITICAL"),
]

_IMAGE_RISK_ACTIONS = [(ActionType.DELETE, "actions.deleteImage", "HIGH")]
_URL_RISK_ACTIONS = [(ActionType.BLOCK, "actions.blockUrl", "HIGH")]


def recommended_actions(
    threat_level: ThreatLevel,
    surface: Surface | str = Surface.TEXT,
    scam_pattern: Optional[ScamPattern] = None,
    translate: Callable[[str], str] | None = None,
    supplied: Optional[Sequence[RecommendedAction]] = None,
) -> tuple[RecommendedAction, ...]:
    """Pick the fixed action set for a threat level and input surface.

    ``supplied`` holds actions a remote analysis already proposed for a text
    message; they are kept unless the message is a digital arrest attempt.
    """
    surface = Surface(surface)
    translate = translate or (lambda key: key)

    if surface is Surface.TEXT:
        if scam_pattern is ScamPattern.DIGITAL_ARREST:
            table = _DIGITAL_ARREST_ACTIONS
        elif supplied:
            return tuple(supplied)
        else:
            table = _DEFAULT_ACTIONS[threat_level]
    elif threat_level is ThreatLevel.SAFE:
        table = _DEFAULT_ACTIONS[threat_level]
    elif surface is Surface.IMAGE:
        table = _IMAGE_RISK_ACTIONS
    else:
        table = _URL_RISK_ACTIONS

    return tuple(
        RecommendedAction(action=action, label=translate(key), priority=priority)
        for action, key, priority in table
    )
