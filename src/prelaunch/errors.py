"""prelaunch 错误类型

- SetupFailure: 协作者主动报告的失败，原样向上传递
- BootFault: 其他任何意外异常，包装为 (类型, payload, 调用栈)
"""

import traceback
from typing import Any


class PrelaunchError(Exception):
    """prelaunch 错误基类"""


class SetupFailure(PrelaunchError):
    """Setup 步骤主动报告的失败

    Args:
        reason: 结构化失败原因，通常是 ("invalid_configuration", path, ...) 形式的元组
    """

    def __init__(self, reason: Any):
        self.reason = reason
        super().__init__(reason)

    def __repr__(self) -> str:
        return f"SetupFailure({self.reason!r})"


class BootFault(PrelaunchError):
    """意外异常的包装

    保存原异常的类型、异常对象本身和调用栈（StackSummary）。
    """

    def __init__(
        self,
        fault_class: type[BaseException],
        payload: BaseException,
        stacktrace: traceback.StackSummary,
    ):
        self.fault_class = fault_class
        self.payload = payload
        self.stacktrace = stacktrace
        super().__init__(f"{fault_class.__name__}: {payload}")

    @classmethod
    def from_exception(cls, exc: BaseException) -> "BootFault":
        return cls(type(exc), exc, traceback.extract_tb(exc.__traceback__))

    @property
    def reason(self) -> tuple[str, str, str]:
        return ("exception", self.fault_class.__name__, str(self.payload))


class StepContractError(PrelaunchError):
    """Setup 步骤返回了 None 以外的值"""

    def __init__(self, step_name: str, returned: Any):
        self.step_name = step_name
        self.returned = returned
        super().__init__(f"Setup step {step_name!r} returned {returned!r} instead of None")


class ContextNotStoredError(PrelaunchError, LookupError):
    """ContextStore 中还没有 Context（首轮 prelaunch 未执行）"""
