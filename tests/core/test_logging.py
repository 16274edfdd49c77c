from __future__ import annotations

import logging

import pytest

from lms_core.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging rewires the root logger; put it back after each test."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


def _record(level: int = logging.INFO, msg: str = "hello", **kw) -> logging.LogRecord:
    return logging.LogRecord(
        name=kw.pop("name", "test"),
        level=level,
        pathname=kw.pop("pathname", "test.py"),
        lineno=kw.pop("lineno", 1),
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


def test_setup_logging_quiets_noisy_libraries_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_setup_logging_installs_json_formatter() -> None:
    setup_logging("info", json_format=True)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, _JsonFormatter)
    setup_logging("info")


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO, "hello"))
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "rejected", lineno=42)
    )
    assert "rejected" in output
    assert "[test.py:42]" in output


def test_formatter_includes_location_for_error() -> None:
    output = _ContainerFormatter().format(
        _record(logging.ERROR, "broke", pathname="svc.py", lineno=99)
    )
    assert "[svc.py:99]" in output
