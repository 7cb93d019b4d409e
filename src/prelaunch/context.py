"""Context - 本次启动解析出的环境

Context 在首轮 prelaunch 中构造，存入 ContextStore 后在整个进程生命周期内只读。
第二轮 prelaunch 从 ContextStore 取回同一个 Context，不重新计算。
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_DATA_DIR, DEFAULT_DIST_PORT, LOG_LEVEL
from .errors import ContextNotStoredError
from .telemetry import get_logger

logger = get_logger(__name__)


class Context(BaseModel):
    """启动环境记录（不可变）"""

    model_config = ConfigDict(frozen=True)

    node_name: str
    data_dir: Path = DEFAULT_DATA_DIR
    pid_file: Path | None = None  # None => 不管理 PID 文件
    keep_pid_file_on_exit: bool = False
    initial_pass: bool = False  # 仅首轮为 True

    log_level: str = LOG_LEVEL
    log_file: Path | None = None
    env_config_file: Path | None = None

    config_file: Path | None = None
    feature_flags_file: Path | None = None
    code_path: tuple[Path, ...] = ()
    app_env_vars: dict[str, str] = Field(default_factory=dict)
    dist_port: int = DEFAULT_DIST_PORT
    precompile: bool = False

    def with_pass(self, initial: bool) -> "Context":
        """返回只修改了 initial_pass 的副本"""
        return self.model_copy(update={"initial_pass": initial})


class ContextStore:
    """进程级 Context 存储

    生命周期：首轮 set 一次，之后 get 多次。同一时刻最多保存一个 Context。
    """

    def __init__(self) -> None:
        self._context: Context | None = None

    def set(self, context: Context) -> None:
        if self._context is not None:
            logger.debug("[ContextStore] Replacing previously stored context")
        self._context = context

    def get(self) -> Context:
        if self._context is None:
            raise ContextNotStoredError("No boot context has been stored yet")
        return self._context

    @property
    def is_set(self) -> bool:
        return self._context is not None
