"""Shutdown hook - 进程终止时清理 PID 文件

安装时读取宿主运行时已注册的终止回调，包装成链：
先删除 PID 文件，再把同一个 reason 交给之前的回调。
"""

from dataclasses import dataclass
from typing import Any

from ..context import Context
from ..telemetry import get_logger
from .host import HostRuntime, ShutdownFunc
from .pidfile import PidFileManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class ShutdownHookState:
    """安装时的快照，只在进程终止时读取一次"""

    context: Context
    previous: ShutdownFunc | None = None


def chain_shutdown_func(state: ShutdownHookState, pid_files: PidFileManager) -> ShutdownFunc:
    """构造链式终止回调"""

    def shutdown_func(reason: Any) -> None:
        pid_files.remove(state.context)
        if state.previous is not None:
            state.previous(reason)

    return shutdown_func


class ShutdownHookRegistry:
    """终止回调注册器"""

    def __init__(self, runtime: HostRuntime, pid_files: PidFileManager):
        self.runtime = runtime
        self.pid_files = pid_files
        self._state: ShutdownHookState | None = None
        self._installed: ShutdownFunc | None = None

    @property
    def state(self) -> ShutdownHookState | None:
        return self._state

    def install(self, context: Context) -> None:
        previous = self.runtime.get_shutdown_func()
        if self._state is not None and previous is self._installed:
            # 重复安装时不把自己串进链里
            previous = self._state.previous

        if previous is not None:
            logger.debug(
                f"[Shutdown] Setting up shutdown func (chained with {_describe(previous)})"
            )
        else:
            logger.debug("[Shutdown] Setting up shutdown func")

        self._state = ShutdownHookState(context=context, previous=previous)
        self._installed = chain_shutdown_func(self._state, self.pid_files)
        self.runtime.set_shutdown_func(self._installed)


def _describe(func: ShutdownFunc) -> str:
    module = getattr(func, "__module__", None) or "?"
    name = getattr(func, "__qualname__", None) or repr(func)
    return f"{module}.{name}"
