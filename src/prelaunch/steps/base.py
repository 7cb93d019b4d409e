"""Setup 步骤基类"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..context import Context


class SetupStep(ABC):
    """Setup 步骤基类

    约定：
    1. 成功时返回 None
    2. 失败时抛出 SetupFailure(reason)
    3. 其它异常一律视为意外故障
    """

    name: str  # 步骤标识: "feature_flags", "conf", "diagnostics", ...

    @abstractmethod
    def setup(self, context: "Context") -> None:
        """执行步骤"""
        pass
