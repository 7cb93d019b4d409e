"""Bytecode - 预编译额外 code path 下的模块"""

import compileall
from typing import TYPE_CHECKING

from ..errors import SetupFailure
from ..telemetry import get_logger
from .base import SetupStep

if TYPE_CHECKING:
    from ..context import Context

logger = get_logger(__name__)


class BytecodeSetup(SetupStep):
    """PRELAUNCH_PRECOMPILE 开启时对 code path 中的每个目录执行 compileall

    不存在的目录跳过并告警；编译出错时抛出 SetupFailure。
    """

    name = "bytecode"

    def setup(self, context: "Context") -> None:
        if not context.precompile:
            logger.debug("[Bytecode] Pre-compilation disabled")
            return

        for entry in context.code_path:
            if not entry.is_dir():
                logger.warning(f"[Bytecode] Skipping missing code path entry: {entry}")
                continue
            logger.info(f"[Bytecode] Compiling {entry}")
            if not compileall.compile_dir(str(entry), quiet=1):
                raise SetupFailure(("bytecode_compilation_failed", str(entry)))
