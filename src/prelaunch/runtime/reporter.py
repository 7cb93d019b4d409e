"""ExceptionReporter - 启动失败输出

两种输出：
- 日志系统已就绪：逐行 logger.error，和其它日志一起被收集
- 日志系统未就绪（或者失败的正是日志系统）：逐行直接写 stderr
"""

import logging
import sys
import traceback
from typing import TextIO

from ..config import ROOT_LOGGER_NAME
from ..errors import SetupFailure

EXCEPTION_HEADER = "Exception during prelaunch phase:"
FAILURE_HEADER = "Setup failure during prelaunch phase:"


def format_exception_lines(exc: BaseException) -> list[str]:
    """异常 -> 文本行

    第一行为 "Type: payload"，之后每个栈帧一行（最内层在最后）。
    """
    lines = [f"{type(exc).__name__}: {exc}"]
    for frame in traceback.extract_tb(exc.__traceback__):
        lines.append(f"    {frame.name} ({frame.filename}, line {frame.lineno})")
    return lines


class ExceptionReporter:
    """启动失败上报"""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        stream: TextIO | None = None,
    ):
        self._logger = logger or logging.getLogger(ROOT_LOGGER_NAME)
        self._stream = stream

    def report(self, exc: BaseException, diagnostics_available: bool) -> None:
        self._emit([EXCEPTION_HEADER, *format_exception_lines(exc)], diagnostics_available)

    def report_failure(self, failure: SetupFailure, diagnostics_available: bool) -> None:
        self._emit([FAILURE_HEADER, repr(failure.reason)], diagnostics_available)

    def _emit(self, lines: list[str], diagnostics_available: bool) -> None:
        if diagnostics_available:
            for line in lines:
                self._logger.error(line)
            return
        # stderr 在调用时解析，便于被替换
        stream = self._stream or sys.stderr
        for line in lines:
            print(line, file=stream)
        stream.flush()
