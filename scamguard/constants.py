"""Centralized constants for ScamGuard.

This module contains enums and constants used across multiple modules
to ensure consistency and reduce duplication.
"""

from enum import Enum, IntEnum


class ThreatLevel(IntEnum):
    """Threat levels with ranking for comparison."""

    SAFE = 0
    CAUTION = 1
    DANGER = 2

    @classmethod
    def from_string(cls, value: str | None) -> "ThreatLevel":
        """Convert string threat level to enum, defaulting to SAFE."""
        if not value:
            return cls.SAFE
        mapping = {
            "safe": cls.SAFE,
            "caution": cls.CAUTION,
            "danger": cls.DANGER,
        }
        return mapping.get(value.lower(), cls.SAFE)

    def __str__(self) -> str:
        return self.name.lower()


class ScamPattern(str, Enum):
    """Coarse classification of the fraud pattern a message follows."""

    OTP = "otp"  # One-time password theft / sharing
    DIGITAL_ARREST = "digital_arrest"  # Impersonated police or government threatening arrest
    UNKNOWN = "unknown"


class Sensitivity(str, Enum):
    """User-selected scoring sensitivity."""

    STANDARD = "standard"
    HIGH = "high"


class Combinator(str, Enum):
    """How a rule joins its keyword test and its pattern test."""

    AND = "AND"
    OR = "OR"


class Surface(str, Enum):
    """Kind of input an analysis was produced for."""

    TEXT = "text"
    IMAGE = "image"
    URL = "url"


class AnalysisMode(str, Enum):
    """Whether a text result came from the remote analyzer or the offline scorer."""

    ONLINE = "online"
    OFFLINE = "offline"


class ActionType(str, Enum):
    """Actions a user can take on an analysis result."""

    BLOCK = "BLOCK"
    VERIFY = "VERIFY"
    PROCEED = "PROCEED"
    REPORT = "REPORT"
    DELETE = "DELETE"
    CONTACT_SUPPORT = "CONTACT_SUPPORT"


SENDER_REPUTATIONS = ("verified", "unverified", "suspicious")
FUND_TRANSFER_URGENCIES = ("none", "high", "critical")

# Amount (INR) above which an online OTP analysis is escalated to danger
HIGH_VALUE_AMOUNT = 50_000

# Window in which a previous OTP log entry marks a repeated-OTP pattern
RECENT_OTP_WINDOW_SECONDS = 5 * 60

