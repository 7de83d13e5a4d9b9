"""Command-line entry point for ScamGuard."""

import argparse
import asyncio
import json
import logging
import sys

from .analyzer.remote import HttpRemoteAnalyzer
from .config import Config, load_config, validate_config
from .constants import Sensitivity
from .i18n import SUPPORTED_LANGUAGES, Translator
from .pipeline.text_analysis import EmptyMessageError, TextAnalysisResult, TextAnalysisService
from .rule_table import RuleBook
from .storage import HistoryDatabase

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def _warn_danger(result: TextAnalysisResult) -> None:
    logger.warning("DANGER: %s", result.reason[:100])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scamguard",
        description="Score messages for scam and phishing risk.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a message")
    analyze.add_argument("text", help="Message text ('-' reads stdin)")
    analyze.add_argument("--sensitivity", choices=[s.value for s in Sensitivity])
    analyze.add_argument("--language", choices=SUPPORTED_LANGUAGES)
    analyze.add_argument("--offline", action="store_true", help="Skip the remote analyzer")
    analyze.add_argument("--json", action="store_true", help="Print the result as JSON")

    history = sub.add_parser("history", help="Show recent analysis log entries")
    history.add_argument("--limit", type=int, default=20)

    sub.add_parser("stats", help="Show threat distribution of the analysis log")
    return parser


def _print_result(result: TextAnalysisResult) -> None:
    print(f"Threat level: {str(result.threat_level).upper()} ({result.analysis_mode.value})")
    if result.scoring is not None:
        print(f"Score: {result.scoring.aggregate_score}")
    print(f"Pattern: {result.scam_pattern.value}")
    print(f"Reason: {result.reason}")
    if result.otp:
        print(f"OTP: {result.otp}")
    if result.url:
        print(f"URL: {result.url}")
        if result.url_suspicion_reason:
            print(f"  {result.url_suspicion_reason}")
    if result.recommended_actions:
        print("Actions: " + ", ".join(a.label for a in result.recommended_actions))


async def run(args: argparse.Namespace, config: Config) -> int:
    async with HistoryDatabase(config.history_db_path) as history:
        if args.command == "history":
            for entry in await history.entries(limit=args.limit):
                item = entry.to_dict()
                print(f"{item['timestamp']}  {item['threat_level']:<8} {item['source']}: {item['details']}")
            return 0

        if args.command == "stats":
            print(json.dumps((await history.stats()).to_dict(), indent=2))
            return 0

        translator = Translator(language=args.language or config.language)
        remote = None
        if config.remote_analyzer_url:
            remote = HttpRemoteAnalyzer(
                config.remote_analyzer_url,
                api_key=config.remote_analyzer_api_key or None,
                timeout=config.remote_analyzer_timeout,
            )
        service = TextAnalysisService(
            remote=remote,
            rule_book=RuleBook(translator, config.rule_definitions),
            translator=translator,
            history=history,
            thresholds=config.thresholds,
            sensitivity=args.sensitivity or config.sensitivity,
            notifier=_warn_danger,
        )

        text = sys.stdin.read() if args.text == "-" else args.text
        try:
            result = await service.analyze(text, offline=args.offline)
        except EmptyMessageError:
            print("Please enter a message to analyze.", file=sys.stderr)
            return 2

        if args.json:
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        else:
            _print_result(result)
        return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    config = load_config()
    _configure_logging(config.log_level)

    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
