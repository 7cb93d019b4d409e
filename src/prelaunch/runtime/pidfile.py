"""PID 文件管理

写入失败只记录告警，不中断启动。
"""

import os

from ..context import Context
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)


class PidFileManager:
    """PID 文件的创建与删除"""

    def write(self, context: Context) -> OSError | None:
        """写入当前进程 PID

        Returns:
            失败时返回 OSError，成功或未配置 PID 文件时返回 None
        """
        pid_file = context.pid_file
        if pid_file is None:
            return None

        logger.debug(f"[PidFile] Writing PID file: {pid_file}")
        try:
            pid_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(
                f'[PidFile] Failed to create PID file "{pid_file}" directory: {e.strerror}'
            )
            metrics.inc("prelaunch.pid_file.error", {"op": "mkdir"})
            return e

        try:
            pid_file.write_text(str(os.getpid()))
        except OSError as e:
            logger.warning(f'[PidFile] Failed to write PID file "{pid_file}": {e.strerror}')
            metrics.inc("prelaunch.pid_file.error", {"op": "write"})
            return e
        return None

    def remove(self, context: Context) -> None:
        """删除 PID 文件（尽力而为，从不抛出）"""
        if context.keep_pid_file_on_exit or context.pid_file is None:
            return
        try:
            context.pid_file.unlink()
        except OSError:
            pass
