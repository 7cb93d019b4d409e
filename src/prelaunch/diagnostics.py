"""Diagnostics - prelaunch 阶段的日志配置

三个入口：
- enable_quick_trace: 按模块前缀跟踪函数调用（排查启动问题用）
- enable_prelaunch_logging: 早期日志，只输出到控制台（标准输出）
- setup: 最终日志配置（控制台 + 可选文件），作为 setup 步骤执行
"""

import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

from .config import LOG_DATE_FORMAT, LOG_FORMAT, ROOT_LOGGER_NAME
from .context import Context
from .errors import SetupFailure
from .steps.base import SetupStep
from .telemetry import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceConfig:
    """调用跟踪配置"""

    modules: tuple[str, ...]
    output: str = "stderr"  # "stderr" 或文件路径


class Diagnostics(SetupStep):
    """prelaunch 日志管理"""

    name = "diagnostics"

    def __init__(self, logger_name: str = ROOT_LOGGER_NAME):
        self._logger = logging.getLogger(logger_name)
        self._handlers: list[logging.Handler] = []
        self._trace_stream: TextIO | None = None
        self.available = False

    # === 调用跟踪 ===

    def enable_quick_trace(self, trace: TraceConfig | None) -> None:
        if trace is None or not trace.modules:
            return
        self.disable_quick_trace()

        if trace.output == "stderr":
            stream = sys.stderr
        else:
            path = Path(trace.output)
            path.parent.mkdir(parents=True, exist_ok=True)
            stream = self._trace_stream = open(path, "a", encoding="utf-8")

        prefixes = trace.modules

        def _profile(frame, event, arg):
            if event != "call":
                return
            module = frame.f_globals.get("__name__", "")
            if any(module == p or module.startswith(p + ".") for p in prefixes):
                code = frame.f_code
                stream.write(f"[trace] {module}.{code.co_name} ({code.co_filename}:{frame.f_lineno})\n")

        sys.setprofile(_profile)
        threading.setprofile(_profile)

    def disable_quick_trace(self) -> None:
        sys.setprofile(None)
        threading.setprofile(None)
        if self._trace_stream is not None:
            self._trace_stream.close()
            self._trace_stream = None

    # === 日志 ===

    def enable_prelaunch_logging(self, context: Context, early: bool = True) -> None:
        level = _parse_level(context.log_level)
        self._replace_handlers([_console_handler(level)], level)
        logger.debug(f"[Diagnostics] Prelaunch logging enabled (level={context.log_level}, early={early})")

    def setup(self, context: Context) -> None:
        level = _parse_level(context.log_level)
        handlers: list[logging.Handler] = [_console_handler(level)]

        if context.log_file is not None:
            try:
                context.log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(context.log_file, encoding="utf-8")
            except OSError as e:
                raise SetupFailure(("cannot_log_to_file", str(context.log_file), e.strerror)) from e
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
            file_handler.setLevel(level)
            handlers.append(file_handler)

        self._replace_handlers(handlers, level)
        logger.debug(f"[Diagnostics] Configured level={context.log_level}, file={context.log_file}")

    def reset(self) -> None:
        """移除本对象安装的所有 handler，关闭调用跟踪"""
        self._replace_handlers([], logging.NOTSET)
        self.disable_quick_trace()
        self.available = False

    def _replace_handlers(self, handlers: list[logging.Handler], level: int) -> None:
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = handlers
        for handler in handlers:
            self._logger.addHandler(handler)
        self._logger.setLevel(level)
        self.available = bool(handlers)


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise SetupFailure(("invalid_log_level", name))
    return level


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(),
        show_path=False,
        log_time_format=f"[{LOG_DATE_FORMAT}]",
    )
    handler.setLevel(level)
    return handler
