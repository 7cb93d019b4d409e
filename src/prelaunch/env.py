"""环境解析 - 从 PRELAUNCH_* 环境变量构造 Context

分三步，对应日志系统初始化前后的不同阶段：
1. context_before_logging_init: 只解析配置日志所需的字段
2. context_after_logging_init: 读取 env 配置文件后重新解析
3. context_after_reloading_env: 解析剩余字段，得到完整 Context

进程环境变量优先于 env 配置文件中的同名变量。
"""

import io
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import dotenv_values

from .config import (
    DEFAULT_DATA_DIR,
    DEFAULT_DIST_PORT,
    DEFAULT_ENV_CONFIG_FILE,
    DEFAULT_NODE_BASENAME,
    DEFAULT_NODE_HOST,
    ENV_PREFIX,
    FEATURE_FLAGS_FILE,
    LOG_LEVEL,
    PID_FILE_SUFFIX,
)
from .context import Context
from .diagnostics import TraceConfig
from .errors import SetupFailure
from .steps.dist import NODE_NAME_RE
from .telemetry import get_logger

if TYPE_CHECKING:
    from .runtime.host import HostRuntime

logger = get_logger(__name__)

APP_ENV_PREFIX = "APP_"  # PRELAUNCH_APP_<KEY>=value -> app env

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def parse_env_config_file(text: str) -> dict[str, str]:
    """解析 KEY=VALUE 格式的 env 配置文件

    语法（注释、引号、export、行内注释）由 python-dotenv 处理；
    变量名可以省略 PRELAUNCH_ 前缀。没有 "=" 的行被忽略。
    """
    values: dict[str, str] = {}
    for key, value in dotenv_values(stream=io.StringIO(text)).items():
        if value is None:
            logger.debug(f"[Env] Ignoring env config entry without value: {key!r}")
            continue
        if not key.startswith(ENV_PREFIX):
            key = ENV_PREFIX + key
        values[key] = value
    return values


class EnvResolver:
    """环境解析协作者"""

    def __init__(
        self,
        runtime: "HostRuntime",
        environ: Mapping[str, str] | None = None,
        sys_path: list[str] | None = None,
    ):
        self.runtime = runtime
        self._environ = dict(os.environ if environ is None else environ)
        self._file_env: dict[str, str] = {}
        self._sys_path = sys.path if sys_path is None else sys_path

    # === 变量读取 ===

    def _get(self, name: str) -> str | None:
        key = ENV_PREFIX + name
        if key in self._environ:
            return self._environ[key]
        return self._file_env.get(key)

    def _get_path(self, name: str) -> Path | None:
        value = self._get(name)
        return Path(value).expanduser() if value else None

    def _get_bool(self, name: str, default: bool = False) -> bool:
        value = self._get(name)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise SetupFailure(("invalid_env_var", ENV_PREFIX + name, value))

    def _get_int(self, name: str, default: int) -> int:
        value = self._get(name)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError:
            raise SetupFailure(("invalid_env_var", ENV_PREFIX + name, value)) from None

    def _node_name(self) -> str:
        value = self._get("NODENAME") or DEFAULT_NODE_BASENAME
        if "@" not in value:
            value = f"{value}@{DEFAULT_NODE_HOST}"
        if not NODE_NAME_RE.match(value):
            raise SetupFailure(("invalid_env_var", ENV_PREFIX + "NODENAME", value))
        return value

    def _early_fields(self) -> dict:
        data_dir = self._get_path("DATA_DIR") or DEFAULT_DATA_DIR
        return {
            "node_name": self._node_name(),
            "data_dir": data_dir,
            "log_level": self._get("LOG_LEVEL") or LOG_LEVEL,
            "log_file": self._get_path("LOG_FILE"),
            "env_config_file": self._get_path("CONF_ENV_FILE") or DEFAULT_ENV_CONFIG_FILE,
        }

    # === Context 构造 ===

    def trace_config(self) -> TraceConfig | None:
        value = self._get("DBG")
        if not value:
            return None
        modules = tuple(m.strip() for m in value.split(",") if m.strip())
        return TraceConfig(modules=modules, output=self._get("DBG_OUTPUT") or "stderr")

    def context_before_logging_init(self) -> Context:
        return Context(**self._early_fields())

    def context_after_logging_init(self, context: Context) -> Context:
        path = context.env_config_file
        if path is not None:
            try:
                text = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.debug(f"[Env] No env config file at {path}")
            except OSError as e:
                logger.warning(f'[Env] Failed to read env config file "{path}": {e.strerror}')
            else:
                self._file_env = parse_env_config_file(text)
                logger.debug(f"[Env] Loaded {len(self._file_env)} variables from {path}")
        return context.model_copy(update=self._early_fields())

    def context_after_reloading_env(self, context: Context) -> Context:
        data_dir = context.data_dir
        pid_file = self._get_path("PID_FILE")
        if pid_file is None and not self._get_bool("NO_PID_FILE"):
            pid_file = data_dir / f"{context.node_name}{PID_FILE_SUFFIX}"

        code_path = tuple(
            Path(entry).expanduser()
            for entry in (self._get("CODE_PATH") or "").split(os.pathsep)
            if entry
        )

        config_file = self._get_path("CONFIG_FILE")
        feature_flags_file = self._get_path("FEATURE_FLAGS_FILE") or data_dir / FEATURE_FLAGS_FILE

        app_env_vars = {
            "data_dir": str(data_dir),
            "feature_flags_file": str(feature_flags_file),
        }
        if config_file is not None:
            app_env_vars["config_file"] = str(config_file)
        app_env_vars.update(self._app_env_overrides())

        return context.model_copy(
            update={
                "pid_file": pid_file,
                "keep_pid_file_on_exit": self._get_bool("KEEP_PID_FILE_ON_EXIT"),
                "config_file": config_file,
                "feature_flags_file": feature_flags_file,
                "code_path": code_path,
                "app_env_vars": app_env_vars,
                "dist_port": self._get_int("DIST_PORT", DEFAULT_DIST_PORT),
                "precompile": self._get_bool("PRECOMPILE"),
            }
        )

    def _app_env_overrides(self) -> dict[str, str]:
        prefix = ENV_PREFIX + APP_ENV_PREFIX
        merged = {**self._file_env, **self._environ}
        return {
            key[len(prefix):].lower(): value
            for key, value in merged.items()
            if key.startswith(prefix) and len(key) > len(prefix)
        }

    # === 日志 ===

    def log_process_env(self) -> None:
        merged = {**self._file_env, **self._environ}
        names = sorted(k for k in merged if k.startswith(ENV_PREFIX))
        logger.debug(f"[Env] Process environment ({len(names)} {ENV_PREFIX}* variables):")
        for name in names:
            source = "env" if name in self._environ else "file"
            logger.debug(f"[Env]   {name}={merged[name]} ({source})")

    def log_context(self, context: Context) -> None:
        logger.debug("[Env] Context:")
        for key, value in context.model_dump().items():
            logger.debug(f"[Env]   {key}: {value!r}")

    # === 应用到宿主 ===

    def context_to_code_path(self, context: Context) -> None:
        for entry in reversed(context.code_path):
            path = str(entry)
            if path not in self._sys_path:
                self._sys_path.insert(0, path)
                logger.debug(f"[Env] Added code path: {path}")

    def context_to_app_env_vars(self, context: Context) -> None:
        for key, value in context.app_env_vars.items():
            self.runtime.set_env("prelaunch", key, value)
