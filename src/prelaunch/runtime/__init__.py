"""Runtime module - prelaunch 编排与进程级状态"""

from .bootstrap import (
    BootSequencer,
    BootSteps,
    build_sequencer,
    get_sequencer,
    run,
    set_sequencer,
)
from .host import EmbeddedDatabase, HostRuntime, NodeIdentity
from .pidfile import PidFileManager
from .reporter import ExceptionReporter
from .shutdown import ShutdownHookRegistry, ShutdownHookState, chain_shutdown_func

__all__ = [
    "run",
    "BootSequencer",
    "BootSteps",
    "build_sequencer",
    "get_sequencer",
    "set_sequencer",
    "EmbeddedDatabase",
    "HostRuntime",
    "NodeIdentity",
    "PidFileManager",
    "ExceptionReporter",
    "ShutdownHookRegistry",
    "ShutdownHookState",
    "chain_shutdown_func",
]
