"""ScamGuard: scam and phishing risk scoring for text messages."""

__version__ = "0.1.0"
