"""Global pytest configuration."""

from __future__ import annotations

import asyncio
import inspect

import pytest

from scamguard.i18n import Translator
from scamguard.rule_table import RuleBook, build_offline_rules


@pytest.fixture
def translator() -> Translator:
    return Translator()


@pytest.fixture
def default_rules(translator):
    return build_offline_rules(translator)


@pytest.fixture
def rule_book(translator) -> RuleBook:
    return RuleBook(translator)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep a developer's .env and shell settings out of config tests."""
    for name in (
        "SCAMGUARD_SENSITIVITY",
        "SCAMGUARD_LANGUAGE",
        "REMOTE_ANALYZER_URL",
        "REMOTE_ANALYZER_API_KEY",
        "REMOTE_ANALYZER_TIMEOUT",
        "DANGER_THRESHOLD_STANDARD",
        "CAUTION_THRESHOLD_STANDARD",
        "DANGER_THRESHOLD_HIGH",
        "CAUTION_THRESHOLD_HIGH",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(pyfuncitem.obj(**testargs))
        finally:
            loop.close()
            asyncio.set_event_loop(None)
        return True
    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")
