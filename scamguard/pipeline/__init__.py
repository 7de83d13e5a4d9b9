"""Analysis pipeline for ScamGuard."""

from .text_analysis import EmptyMessageError, TextAnalysisResult, TextAnalysisService, format_inr

__all__ = ["EmptyMessageError", "TextAnalysisResult", "TextAnalysisService", "format_inr"]
