"""prelaunch - 服务进程启动前的环境准备"""

from .context import Context, ContextStore
from .errors import BootFault, PrelaunchError, SetupFailure
from .result import BootResult, Outcome
from .runtime import run

__all__ = [
    "run",
    "Context",
    "ContextStore",
    "BootResult",
    "Outcome",
    "PrelaunchError",
    "SetupFailure",
    "BootFault",
]
