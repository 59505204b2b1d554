"""Tests for logging configuration."""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from conftest import CHARACTER_ID, HUMAN, WIZARD, InMemoryDocumentStore, InMemoryResolver
from vagabond_builder.builder.commit import commit_character
from vagabond_builder.builder.state import BuilderState, StatAssignment
from vagabond_builder.builder.validation import ValidationReport
from vagabond_builder.core.config import Settings
from vagabond_builder.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    resolve_level,
)
from vagabond_builder.engine.derived import DerivedStatEngine
from vagabond_builder.models.enums import Stat


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults after each test."""
    yield
    clear_context()
    structlog.reset_defaults()


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self) -> None:
        """Test JSON rendering with the configured app name."""
        stream = io.StringIO()
        configure_logging(Settings(log_json=True, app_name="test-builder"), stream=stream)

        get_logger("tests").info("Stat array selected", array_id=3)

        [entry] = _lines(stream)
        assert entry["event"] == "Stat array selected"
        assert entry["array_id"] == 3
        assert entry["app"] == "test-builder"
        assert entry["level"] == "info"

    def test_console_output(self) -> None:
        """Test that the console renderer is used without log_json."""
        stream = io.StringIO()
        configure_logging(Settings(log_json=False), stream=stream)

        get_logger("tests").info("Stat array selected", array_id=3)

        output = stream.getvalue()
        assert "Stat array selected" in output
        assert "array_id=3" in output
        assert not output.lstrip().startswith("{")

    def test_level_filter(self) -> None:
        """Test that entries below the configured level are dropped."""
        stream = io.StringIO()
        configure_logging(Settings(log_json=True, log_level="WARNING"), stream=stream)
        logger = get_logger("tests")

        logger.info("hidden")
        logger.warning("shown")

        assert [entry["event"] for entry in _lines(stream)] == ["shown"]

    def test_debug_forces_debug_level(self) -> None:
        """Test that debug mode overrides the log level."""
        assert resolve_level(Settings(log_level="ERROR")) == logging.ERROR
        assert resolve_level(Settings(log_level="ERROR", debug=True)) == logging.DEBUG

    def test_reconfigure_affects_existing_loggers(self) -> None:
        """Test that loggers created before configuration pick it up."""
        logger = get_logger("tests")
        first = io.StringIO()
        second = io.StringIO()

        configure_logging(Settings(log_json=True), stream=first)
        logger.info("one")
        configure_logging(Settings(log_json=True), stream=second)
        logger.info("two")

        assert [entry["event"] for entry in _lines(first)] == ["one"]
        assert [entry["event"] for entry in _lines(second)] == ["two"]

    def test_bound_context(self) -> None:
        """Test that bound context is merged and can be cleared."""
        stream = io.StringIO()
        configure_logging(Settings(log_json=True), stream=stream)
        logger = get_logger("tests")

        bind_context(builder_session="abc")
        logger.info("inside")
        clear_context()
        logger.info("outside")

        inside, outside = _lines(stream)
        assert inside["builder_session"] == "abc"
        assert "builder_session" not in outside


class TestCommitLogging:
    """Tests for the context bound while a character is committed."""

    @pytest.mark.asyncio
    async def test_commit_binds_session(
        self,
        resolver: InMemoryResolver,
        store: InMemoryDocumentStore,
        settings: Settings,
    ) -> None:
        """Test that commit events carry the character id and it is unbound after."""
        stream = io.StringIO()
        configure_logging(Settings(log_json=True, log_level="DEBUG"), stream=stream)
        state = BuilderState(
            ancestry=HUMAN,
            character_class=WIZARD,
            stats=StatAssignment(array_id=3, slots=dict(zip(Stat, (6, 5, 4, 4, 4, 3)))),
        )

        await commit_character(
            state,
            CHARACTER_ID,
            report=ValidationReport(),
            resolver=resolver,
            store=store,
            engine=DerivedStatEngine(settings),
        )
        get_logger("tests").info("after commit")

        entries = {entry["event"]: entry for entry in _lines(stream)}
        assert entries["Builder items created"]["builder_session"] == CHARACTER_ID
        assert entries["Character committed"]["builder_session"] == CHARACTER_ID
        assert "builder_session" not in entries["after commit"]
