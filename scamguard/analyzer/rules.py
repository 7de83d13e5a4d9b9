"""Rule-based building blocks for offline threat scoring."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..constants import Combinator, ScamPattern

logger = logging.getLogger(__name__)

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


class RuleConfigError(ValueError):
    """Raised when a rule definition cannot be turned into a Rule."""


@dataclass(frozen=True)
class Rule:
    """One detection signal: keywords and/or a regex with a score."""

    score: int
    reason: str
    keywords: tuple[str, ...] = field(default_factory=tuple)
    pattern: Optional[re.Pattern] = None
    scam_pattern: ScamPattern = ScamPattern.UNKNOWN
    combinator: Combinator = Combinator.OR
    name: str = ""

    def keyword_hit(self, lowered: str) -> bool:
        return any(k in lowered for k in self.keywords)

    def pattern_hit(self, text: str) -> bool:
        return self.pattern is not None and self.pattern.search(text) is not None

    def fires(self, text: str, lowered: str) -> bool:
        """Whether this rule fires for text (lowered is text.lower())."""
        keyword_hit = bool(self.keywords) and self.keyword_hit(lowered)
        pattern_hit = self.pattern_hit(text)
        if self.combinator is Combinator.AND:
            return keyword_hit and pattern_hit
        return keyword_hit or pattern_hit


def is_inert(rule: Rule) -> bool:
    """A rule that can never fire, e.g. an AND rule missing its regex."""
    if rule.combinator is Combinator.AND:
        return not rule.keywords or rule.pattern is None
    return not rule.keywords and rule.pattern is None


def validate_rules(rules: Iterable[Rule]) -> list[str]:
    """Return warnings for rules that are structurally unable to fire."""
    warnings: list[str] = []
    for index, rule in enumerate(rules):
        if not is_inert(rule):
            continue
        label = rule.name or f"#{index}"
        if rule.combinator is Combinator.AND:
            missing = "keywords" if not rule.keywords else "regex"
            warnings.append(f"Rule {label} uses AND but has no {missing}; it will never fire")
        else:
            warnings.append(f"Rule {label} has neither keywords nor regex; it will never fire")
    return warnings


def _compile_pattern(raw, flags: str = "") -> Optional[re.Pattern]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, re.Pattern):
        return raw
    # \d, \w and \b match ASCII only, so non-Latin digits are not codes
    value = re.ASCII
    for flag in flags or "":
        if flag not in _REGEX_FLAGS:
            raise RuleConfigError(f"Unknown regex flag: {flag!r}")
        value |= _REGEX_FLAGS[flag]
    try:
        return re.compile(str(raw), value)
    except re.error as exc:
        raise RuleConfigError(f"Invalid regex {raw!r}: {exc}") from exc


def compile_rule(entry: dict, translate: Callable[[str], str] | None = None) -> Rule:
    """Build a Rule from a config-style mapping.

    Recognised keys: name, keywords, regex, flags, score, reason, reason_key,
    scam_pattern, match_logic. ``reason_key`` is resolved through ``translate``
    when no literal ``reason`` is given.
    """
    if not isinstance(entry, dict):
        raise RuleConfigError(f"Rule entry must be a mapping, got {type(entry).__name__}")

    name = str(entry.get("name") or "").strip()

    try:
        score = int(entry.get("score"))
    except (TypeError, ValueError):
        raise RuleConfigError(f"Rule {name or '?'} has no integer score") from None
    if score <= 0:
        raise RuleConfigError(f"Rule {name or '?'} score must be positive")

    reason = str(entry.get("reason") or "").strip()
    reason_key = str(entry.get("reason_key") or "").strip()
    if not reason and reason_key:
        reason = translate(reason_key) if translate else reason_key
    if not reason:
        raise RuleConfigError(f"Rule {name or '?'} has no reason")

    keywords = tuple(
        str(k).strip().lower() for k in (entry.get("keywords") or []) if str(k).strip()
    )

    try:
        scam_pattern = ScamPattern(str(entry.get("scam_pattern") or "unknown").strip().lower())
    except ValueError:
        raise RuleConfigError(
            f"Rule {name or '?'} has unknown scam_pattern {entry.get('scam_pattern')!r}"
        ) from None

    try:
        combinator = Combinator(str(entry.get("match_logic") or "OR").strip().upper())
    except ValueError:
        raise RuleConfigError(
            f"Rule {name or '?'} has unknown match_logic {entry.get('match_logic')!r}"
        ) from None

    return Rule(
        score=score,
        reason=reason,
        keywords=keywords,
        pattern=_compile_pattern(entry.get("regex"), str(entry.get("flags") or "")),
        scam_pattern=scam_pattern,
        combinator=combinator,
        name=name,
    )


def compile_rules(
    entries: Iterable[dict], translate: Callable[[str], str] | None = None
) -> tuple[Rule, ...]:
    """Compile rule definitions once, logging a warning for each inert rule."""
    rules = tuple(compile_rule(entry, translate) for entry in entries)
    for warning in validate_rules(rules):
        logger.warning(warning)
    return rules
