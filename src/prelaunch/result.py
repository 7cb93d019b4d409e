"""run() 的返回值"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import BootFault, SetupFailure


class Outcome(Enum):
    """成功时的哨兵值"""

    NO_CHILD = "ignore"  # 没有需要常驻监管的子进程


@dataclass(frozen=True)
class BootResult:
    """prelaunch 执行结果

    成功: outcome=NO_CHILD, error=None
    失败: outcome=None, error 为 SetupFailure 或 BootFault
    """

    outcome: Outcome | None = None
    error: SetupFailure | BootFault | None = None

    @classmethod
    def no_child(cls) -> "BootResult":
        return cls(outcome=Outcome.NO_CHILD)

    @classmethod
    def failed(cls, error: SetupFailure | BootFault) -> "BootResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> Any:
        """失败原因；成功时为 None"""
        if self.error is None:
            return None
        return self.error.reason

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
