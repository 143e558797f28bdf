"""Tests for the logging helpers."""

import logging
from unittest.mock import MagicMock

from src.infrastructure.logging import logger as logger_module


def test_logger_builder_writes_dated_file_under_project_logs(tmp_path, monkeypatch):
    """LoggerBuilder should place log files under <root>/logs/<subdir>."""
    monkeypatch.setattr(logger_module, "get_project_root", lambda: tmp_path)
    monkeypatch.setattr(
        logger_module.LoggerBuilder,
        "_today_stamp",
        staticmethod(lambda: "20240101"),
    )

    builder = logger_module.LoggerBuilder()
    closure_logger = (
        builder.name("ledger_fx.test.closure")
        .subdir("closure")
        .prefix("closure_logs")
        .console(True)
        .level(logging.WARNING)
        .build()
    )

    assert closure_logger.name == "ledger_fx.test.closure"
    assert closure_logger.level == logging.WARNING
    file_handlers = [
        handler
        for handler in closure_logger.handlers
        if isinstance(handler, logging.FileHandler)
    ]
    assert len(file_handlers) == 1
    expected = tmp_path / "logs" / "closure" / "20240101_closure_logs.log"
    assert file_handlers[0].baseFilename == str(expected)
    assert any(
        type(handler) is logging.StreamHandler
        for handler in closure_logger.handlers
    )
    assert builder.build() is closure_logger
    for handler in list(closure_logger.handlers):
        handler.close()
        closure_logger.removeHandler(handler)


def test_custom_handler_factories_are_used(tmp_path, monkeypatch):
    """Injected formatter and handler factories replace the defaults."""
    monkeypatch.setattr(logger_module, "get_project_root", lambda: tmp_path)
    fmt = logging.Formatter("%(message)s")
    captured = {}

    def _file_handler(path, formatter):
        captured["path"] = path
        captured["formatter"] = formatter
        return logging.NullHandler()

    feed_logger = (
        logger_module.LoggerBuilder()
        .name("ledger_fx.test.feed")
        .subdir("feed")
        .prefix("feed_logs")
        .formatter(lambda: fmt)
        .file_handler(_file_handler)
        .build()
    )

    assert captured["formatter"] is fmt
    assert captured["path"].parent == tmp_path / "logs" / "feed"
    assert isinstance(feed_logger.handlers[0], logging.NullHandler)
    feed_logger.handlers.clear()


def test_default_handlers_use_formatter(tmp_path):
    """Default handlers should apply the provided formatter at INFO."""
    fmt = logger_module.LoggerBuilder._default_formatter()
    file_handler = logger_module.LoggerBuilder._default_file_handler(
        tmp_path / "rates.log",
        fmt,
    )
    console_handler = logger_module.LoggerBuilder._default_console_handler(fmt)

    assert isinstance(file_handler, logging.FileHandler)
    assert file_handler.level == logging.INFO
    assert file_handler.formatter is fmt
    assert console_handler.level == logging.INFO
    assert console_handler.formatter is fmt
    file_handler.close()


def test_logger_singleton_delegates_to_underlying_logger(monkeypatch):
    """Logger methods should call the wrapped logger."""
    fake_logger = MagicMock()
    monkeypatch.setattr(
        logger_module.LoggerBuilder,
        "build",
        lambda self: fake_logger,
    )
    monkeypatch.setattr(logger_module.Logger, "_instance", None)

    wrapper = logger_module.Logger("ledger_fx")
    wrapper.info("hello")
    wrapper.warning("warn")
    wrapper.error("err")
    wrapper.debug("dbg")
    wrapper.critical("crit")

    fake_logger.info.assert_called_with("hello")
    fake_logger.warning.assert_called_with("warn")
    fake_logger.error.assert_called_with("err")
    fake_logger.debug.assert_called_with("dbg")
    fake_logger.critical.assert_called_with("crit")
    assert logger_module.Logger("ledger_fx") is wrapper


def test_app_and_usage_loggers_are_separate_singletons(monkeypatch):
    """get_app_logger and get_usage_logger each return one shared instance."""
    built = []

    def _fake_build(self):
        built.append((self._name, self._subdir, self._console))
        return MagicMock()

    monkeypatch.setattr(logger_module.LoggerBuilder, "build", _fake_build)
    monkeypatch.setattr(logger_module.AppLogger, "_instance", None)
    monkeypatch.setattr(logger_module.UsageLogger, "_instance", None)

    app_logger = logger_module.get_app_logger()
    usage_logger = logger_module.get_usage_logger()

    assert logger_module.get_app_logger() is app_logger
    assert logger_module.get_usage_logger() is usage_logger
    assert app_logger is not usage_logger
    assert built == [
        ("ledger_fx", "app", True),
        ("ledger_fx.usage", "usage", False),
    ]
