import json
import logging

import pytest
import structlog

from resourceplanner.platform.config import Settings
from resourceplanner.platform.logging import (
    bind_planning_context,
    clear_planning_context,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    clear_planning_context()
    structlog.reset_defaults()
    logging.getLogger("resourceplanner").setLevel(logging.NOTSET)


def test_json_output_carries_bound_context(caplog):
    configure_logging(Settings(LOG_LEVEL="info"), json_logs=True)
    bind_planning_context(cycle_id="c-1")

    get_logger("resourceplanner.test").info("allocation_created", allocation_id="a1")

    event = json.loads(caplog.records[-1].getMessage())
    assert event["event"] == "allocation_created"
    assert event["allocation_id"] == "a1"
    assert event["cycle_id"] == "c-1"
    assert event["level"] == "info"
    assert event["logger"] == "resourceplanner.test"


def test_level_filters_events(caplog):
    configure_logging(Settings(LOG_LEVEL="warning"), json_logs=True)

    get_logger("resourceplanner.test").info("too_quiet")
    get_logger("resourceplanner.test").warning("loud_enough")

    messages = [record.getMessage() for record in caplog.records]
    assert not any("too_quiet" in message for message in messages)
    assert any("loud_enough" in message for message in messages)
    assert logging.getLogger("resourceplanner").level == logging.WARNING


def test_clear_context():
    bind_planning_context(cycle_id="c-2")
    clear_planning_context()
    assert structlog.contextvars.get_contextvars() == {}
