from __future__ import annotations

import logging

from shortnews.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


def _record(level: int = logging.INFO, msg: str = "hello", lineno: int = 1) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="svc.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_redis_and_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("redis").level == logging.WARNING


def test_setup_logging_selects_json_formatter() -> None:
    setup_logging("info", json_format=True)
    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, _JsonFormatter)

    setup_logging("info")
    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, _ContainerFormatter)


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record())
    assert "hello" in output
    assert "[svc.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(_record(logging.WARNING, "bad thing", 42))
    assert "bad thing" in output
    assert "[svc.py:42]" in output


def test_container_line_carries_request_id() -> None:
    record = _record()
    record.request_id = "req-7"  # type: ignore[attr-defined]
    assert "[req-7]  hello" in _ContainerFormatter().format(record)


def test_request_id_reaches_child_logger_records(capsys) -> None:
    from shortnews.core.logging import request_id_var

    setup_logging("info")
    token = request_id_var.set("req-42")
    try:
        logging.getLogger("shortnews.some.module").info("inside a request")
    finally:
        request_id_var.reset(token)

    assert "[req-42]  inside a request" in capsys.readouterr().out
