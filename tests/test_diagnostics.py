"""Diagnostics 测试"""

import logging

import pytest
from rich.logging import RichHandler

from prelaunch.diagnostics import Diagnostics, TraceConfig
from prelaunch.errors import SetupFailure

LOGGER_NAME = "prelaunch.test_diagnostics"


@pytest.fixture
def diagnostics():
    diag = Diagnostics(logger_name=LOGGER_NAME)
    yield diag
    diag.reset()


def _handlers():
    return logging.getLogger(LOGGER_NAME).handlers


class TestPrelaunchLogging:
    """早期日志"""

    def test_installs_console_handler(self, diagnostics, make_context):
        diagnostics.enable_prelaunch_logging(make_context(log_level="debug"), early=True)

        assert len(_handlers()) == 1
        assert isinstance(_handlers()[0], RichHandler)
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG
        assert diagnostics.available is True

    def test_console_writes_to_stdout(self, diagnostics, make_context, capsys):
        """控制台日志输出到标准输出，不占用标准错误"""
        diagnostics.enable_prelaunch_logging(make_context())

        logging.getLogger(LOGGER_NAME).error("node is down")

        captured = capsys.readouterr()
        assert "node is down" in captured.out
        assert "node is down" not in captured.err

    def test_reconfigure_replaces_handler(self, diagnostics, make_context):
        diagnostics.enable_prelaunch_logging(make_context(), early=True)
        diagnostics.enable_prelaunch_logging(make_context(log_level="warning"), early=True)

        assert len(_handlers()) == 1
        assert logging.getLogger(LOGGER_NAME).level == logging.WARNING

    def test_invalid_level(self, diagnostics, make_context):
        with pytest.raises(SetupFailure) as exc_info:
            diagnostics.enable_prelaunch_logging(make_context(log_level="loud"))
        assert exc_info.value.reason == ("invalid_log_level", "loud")


class TestSetup:
    """最终日志配置"""

    def test_console_only(self, diagnostics, make_context):
        diagnostics.setup(make_context())

        assert len(_handlers()) == 1
        assert diagnostics.available is True

    def test_log_file(self, diagnostics, make_context, tmp_path):
        log_file = tmp_path / "log" / "prelaunch.log"
        diagnostics.setup(make_context(log_level="info", log_file=log_file))

        logging.getLogger(LOGGER_NAME).info("hello from prelaunch")
        diagnostics.reset()

        assert "hello from prelaunch" in log_file.read_text()

    def test_unwritable_log_file(self, diagnostics, make_context, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(SetupFailure) as exc_info:
            diagnostics.setup(make_context(log_file=blocker / "prelaunch.log"))

        assert exc_info.value.reason[0] == "cannot_log_to_file"

    def test_reset_removes_handlers(self, diagnostics, make_context):
        diagnostics.setup(make_context())
        diagnostics.reset()

        assert _handlers() == []
        assert diagnostics.available is False


def traced_function():
    return 42


class TestQuickTrace:
    """调用跟踪"""

    def test_disabled_without_config(self, diagnostics):
        diagnostics.enable_quick_trace(None)
        diagnostics.enable_quick_trace(TraceConfig(modules=()))

    def test_traces_calls_to_file(self, diagnostics, tmp_path):
        output = tmp_path / "trace.log"
        diagnostics.enable_quick_trace(TraceConfig(modules=(__name__,), output=str(output)))
        try:
            traced_function()
        finally:
            diagnostics.disable_quick_trace()

        assert f"{__name__}.traced_function" in output.read_text()

    def test_reenable_closes_previous_stream(self, diagnostics, tmp_path):
        """再次开启跟踪时关闭上一次的输出文件"""
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        diagnostics.enable_quick_trace(TraceConfig(modules=(__name__,), output=str(first)))
        first_stream = diagnostics._trace_stream
        diagnostics.enable_quick_trace(TraceConfig(modules=(__name__,), output=str(second)))
        try:
            traced_function()
        finally:
            diagnostics.disable_quick_trace()

        assert first_stream.closed
        assert "traced_function" not in first.read_text()
        assert f"{__name__}.traced_function" in second.read_text()
