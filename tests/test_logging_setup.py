import io
import json
import logging
import pytest
from tripgate.common.constants import correlation_id_ctx
from tripgate.common.logging_setup import (
    JSONFormatter,
    SecurityFilter,
    get_logger,
    sanitize_message_text,
    setup_logging,
    stop_logging,
)
from tripgate.config.settings import Settings


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield
    finally:
        stop_logging()
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in handlers:
            root.addHandler(h)
        root.setLevel(level)


@pytest.mark.parametrize("raw, leaked", [
    ("login failed password=hunter2", "hunter2"),
    ('payload {"token": "abc.def"}', "abc.def"),
    ("cannot reach postgres://svc:s3cr3t@db:5432/app", "s3cr3t"),
])
def test_sanitize_message_text(raw, leaked):
    out = sanitize_message_text(raw)
    assert leaked not in out
    assert "[REDACTED]" in out


def test_json_formatter_includes_extras_and_correlation_id():
    record = logging.LogRecord("tripgate.circuit", logging.WARNING, __file__, 10,
                               "circuit %s opened", ("db",), None)
    record.breaker = "db"
    record.last_error = "OperationalError('dsn=postgres://u:pw@h')"

    token = correlation_id_ctx.set("req-42")
    try:
        data = json.loads(JSONFormatter(env="prod", service="svc").format(record))
    finally:
        correlation_id_ctx.reset(token)

    assert data["message"] == "circuit db opened"
    assert data["level"] == "WARNING"
    assert data["service"] == "svc"
    assert data["breaker"] == "db"
    assert data["correlation_id"] == "req-42"
    assert "pw" not in data["last_error"]


def test_security_filter_is_noop_in_dev():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "secret=%s", ("abc",), None)
    assert SecurityFilter(env="dev").filter(record)
    assert record.getMessage() == "secret=abc"

    assert SecurityFilter(env="prod").filter(record)
    assert record.getMessage() == "secret=[REDACTED]"


def test_context_logger_attaches_correlation_id(caplog):
    log = get_logger("tripgate.test")
    token = correlation_id_ctx.set("job-7")
    try:
        with caplog.at_level(logging.INFO, logger="tripgate.test"):
            log.info("probe admitted", extra={"breaker": "db"})
    finally:
        correlation_id_ctx.reset(token)

    record = caplog.records[-1]
    assert record.correlation_id == "job-7"
    assert record.breaker == "db"
    assert record.funcName == "test_context_logger_attaches_correlation_id"


def test_setup_logging_writes_json_outside_dev(restore_root_logger):
    stream = io.StringIO()
    setup_logging(Settings(_env_file=None, ENV="prod", SERVICE_NAME="orders"), stream=stream)

    get_logger("tripgate.circuit").warning("circuit %s opened", "db", extra={"breaker": "db"})
    get_logger("tripgate.circuit").debug("below the prod level")
    stop_logging()

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert len(lines) == 1
    assert lines[0]["message"] == "circuit db opened"
    assert lines[0]["service"] == "orders"
    assert lines[0]["env"] == "prod"
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_respects_log_level_override(restore_root_logger):
    setup_logging(Settings(_env_file=None, ENV="dev", LOG_LEVEL="warning"), stream=io.StringIO())
    assert logging.getLogger().level == logging.WARNING
