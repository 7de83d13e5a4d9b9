"""Configuration management for ScamGuard."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .analyzer.rules import RuleConfigError, compile_rule
from .analyzer.scorer import ThresholdPair, Thresholds
from .constants import Sensitivity
from .i18n import SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Scoring
    sensitivity: str = Sensitivity.STANDARD.value
    language: str = "en"
    thresholds: Thresholds = field(default_factory=Thresholds)

    # Remote analyzer (optional; offline rules are used when unset or failing)
    remote_analyzer_url: str = ""
    remote_analyzer_api_key: str = ""
    remote_analyzer_timeout: float = 15.0

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Rule definitions loaded from config/rules.yaml (None = built-in table)
    rule_definitions: Optional[list[dict]] = None

    log_level: str = "INFO"

    def __post_init__(self):
        """Normalize paths and ensure the data directory exists."""
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def history_db_path(self) -> Path:
        return self.data_dir / "history.db"


def _load_rule_definitions(config_dir: Path) -> Optional[list[dict]]:
    """Load rule overrides from config/rules.yaml (optional)."""
    path = Path(config_dir or ".") / "rules.yaml"
    if not path.exists():
        return None

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Failed to parse rules.yaml: %s", exc)
        return None

    raw = data.get("rules") if isinstance(data, dict) else data
    if not isinstance(raw, list):
        logger.warning("rules.yaml has no 'rules' list; using built-in rules")
        return None

    definitions: list[dict] = []
    for entry in raw:
        # Compile once here so a bad regex is reported at load time.
        try:
            compile_rule(entry)
        except RuleConfigError as exc:
            logger.warning("Skipping rule from rules.yaml: %s", exc)
            continue
        definitions.append(dict(entry))

    if not definitions:
        logger.warning("rules.yaml contained no usable rules; using built-in rules")
        return None
    return definitions


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    thresholds = Thresholds(
        standard=ThresholdPair(
            danger=_env_int("DANGER_THRESHOLD_STANDARD", 10),
            caution=_env_int("CAUTION_THRESHOLD_STANDARD", 3),
        ),
        high=ThresholdPair(
            danger=_env_int("DANGER_THRESHOLD_HIGH", 8),
            caution=_env_int("CAUTION_THRESHOLD_HIGH", 2),
        ),
    )

    return Config(
        sensitivity=os.getenv("SCAMGUARD_SENSITIVITY", "standard").strip().lower(),
        language=os.getenv("SCAMGUARD_LANGUAGE", "en").strip().lower(),
        thresholds=thresholds,
        remote_analyzer_url=os.getenv("REMOTE_ANALYZER_URL", ""),
        remote_analyzer_api_key=os.getenv("REMOTE_ANALYZER_API_KEY", ""),
        remote_analyzer_timeout=float(os.getenv("REMOTE_ANALYZER_TIMEOUT", "15")),
        data_dir=Path(os.getenv("DATA_DIR", "./data")),
        config_dir=config_dir,
        rule_definitions=_load_rule_definitions(config_dir),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    if config.sensitivity not in {s.value for s in Sensitivity}:
        errors.append(f"SCAMGUARD_SENSITIVITY must be 'standard' or 'high', got {config.sensitivity!r}")
    if config.language not in SUPPORTED_LANGUAGES:
        errors.append(
            f"SCAMGUARD_LANGUAGE must be one of {', '.join(SUPPORTED_LANGUAGES)}, got {config.language!r}"
        )

    for name in ("standard", "high"):
        pair: ThresholdPair = getattr(config.thresholds, name)
        if pair.caution <= 0 or pair.danger <= 0:
            errors.append(f"{name} thresholds must be positive")
        elif pair.caution > pair.danger:
            errors.append(f"{name} caution threshold ({pair.caution}) exceeds danger threshold ({pair.danger})")

    if config.remote_analyzer_timeout <= 0:
        errors.append("REMOTE_ANALYZER_TIMEOUT must be positive")

    if not config.remote_analyzer_url:
        logger.info("No REMOTE_ANALYZER_URL configured; all analysis will use offline rules")

    return errors
