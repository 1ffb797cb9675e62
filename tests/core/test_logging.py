"""Tests for baton.core.logging."""

import json
import logging

import pytest
import structlog

from baton.core.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestContextBinding:
    def test_bind_and_unbind(self):
        bind_context(atom="nightly", atom_id="abc")
        assert structlog.contextvars.get_contextvars() == {"atom": "nightly", "atom_id": "abc"}
        unbind_context("atom_id")
        assert structlog.contextvars.get_contextvars() == {"atom": "nightly"}

    def test_log_context_is_scoped(self):
        bind_context(request="r1")
        with LogContext(atom="nightly"):
            assert structlog.contextvars.get_contextvars() == {"request": "r1", "atom": "nightly"}
        assert structlog.contextvars.get_contextvars() == {"request": "r1"}

    def test_log_context_restores_outer_value(self):
        bind_context(atom_id="outer")
        with LogContext(atom_id="inner"):
            assert structlog.contextvars.get_contextvars()["atom_id"] == "inner"
        assert structlog.contextvars.get_contextvars() == {"atom_id": "outer"}

    def test_nested_log_contexts(self):
        with LogContext(atom_id="a"):
            with LogContext(atom_id="b", unit=1):
                assert structlog.contextvars.get_contextvars() == {"atom_id": "b", "unit": 1}
            assert structlog.contextvars.get_contextvars() == {"atom_id": "a"}
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigureLogging:
    def test_json_output_is_ecs_shaped(self, caplog):
        caplog.set_level(logging.INFO)
        configure_logging(level="INFO", json_format=True, service="baton-test")
        logger = get_logger("baton.test.json")

        with LogContext(atom="nightly"):
            logger.info("atom.finished", units=3)

        record = next(r for r in caplog.records if r.name == "baton.test.json")
        event = json.loads(record.getMessage())
        assert event["event"] == "atom.finished"
        assert event["units"] == 3
        assert event["atom"] == "nightly"
        assert event["service.name"] == "baton-test"
        assert event["log.level"] == "info"
        assert "@timestamp" in event

    def test_level_filters_lower_events(self, caplog):
        caplog.set_level(logging.DEBUG)
        configure_logging(level="WARNING", json_format=True)
        logger = get_logger("baton.test.filter")

        logger.info("quiet")
        logger.warning("loud")

        messages = [r.getMessage() for r in caplog.records if r.name == "baton.test.filter"]
        assert len(messages) == 1
        assert json.loads(messages[0])["event"] == "loud"
