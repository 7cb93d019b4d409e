"""HostRuntime - 宿主运行时状态

prelaunch 只通过这个对象接触宿主进程：
- 节点身份（分布式启动后才确定）
- 应用环境（app -> key -> value）
- 进程终止回调槽位（shutdown func）
- 内嵌分布式数据库组件
"""

import atexit
import signal
from collections.abc import Callable
from enum import Enum
from typing import Any

from ..telemetry import get_logger

logger = get_logger(__name__)

ShutdownFunc = Callable[[Any], None]


class NodeIdentity(Enum):
    """节点身份状态，决定 prelaunch 走哪条路径"""

    UNRESOLVED = "unresolved"  # 首轮：完整启动
    RESOLVED = "resolved"  # 再次进入：精简启动


class EmbeddedDatabase:
    """内嵌分布式数据库组件

    由上游依赖顺带启动；分布式未配置时不可用，prelaunch 需要先把它停掉。
    """

    def __init__(self, running: bool = False):
        self._running = running

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        """停止组件（幂等）"""
        if self._running:
            logger.debug("[EmbeddedDatabase] Stopping")
        self._running = False


class HostRuntime:
    """宿主运行时"""

    def __init__(self, embedded_db: EmbeddedDatabase | None = None):
        self.embedded_db = embedded_db or EmbeddedDatabase()
        self._node_name: str | None = None
        self._app_env: dict[str, dict[str, Any]] = {}
        self._shutdown_func: ShutdownFunc | None = None
        self._shut_down = False

    # === 节点身份 ===

    @property
    def node_name(self) -> str | None:
        return self._node_name

    @property
    def node_identity(self) -> NodeIdentity:
        if self._node_name is None:
            return NodeIdentity.UNRESOLVED
        return NodeIdentity.RESOLVED

    def start_distribution(self, node_name: str) -> None:
        """启动分布式，确定节点身份"""
        self._node_name = node_name
        logger.info(f"[HostRuntime] Distribution started as {node_name}")

    # === 应用环境 ===

    def get_env(self, app: str, key: str, default: Any = None) -> Any:
        return self._app_env.get(app, {}).get(key, default)

    def set_env(self, app: str, key: str, value: Any) -> None:
        self._app_env.setdefault(app, {})[key] = value

    # === 进程终止回调 ===

    def get_shutdown_func(self) -> ShutdownFunc | None:
        return self._shutdown_func

    def set_shutdown_func(self, func: ShutdownFunc | None) -> None:
        self._shutdown_func = func

    def shutdown(self, reason: Any) -> None:
        """调用已注册的终止回调（最多一次）"""
        if self._shut_down:
            return
        self._shut_down = True
        func = self._shutdown_func
        if func is None:
            return
        logger.debug(f"[HostRuntime] Running shutdown func, reason={reason!r}")
        func(reason)

    def bind_process_exit(self) -> None:
        """把进程退出（正常退出 / SIGTERM）接到 shutdown()"""
        atexit.register(self.shutdown, "normal")

        def _handle_sigterm(signum, frame):
            self.shutdown("sigterm")
            raise SystemExit(128 + signum)

        signal.signal(signal.SIGTERM, _handle_sigterm)
