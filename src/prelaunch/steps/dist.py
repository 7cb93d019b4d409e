"""Dist - 分布式检查和启动

分布式启动后节点身份即确定，之后再进入 prelaunch 走精简路径。
"""

import re
import socket
from typing import TYPE_CHECKING

from ..errors import SetupFailure
from ..telemetry import get_logger
from .base import SetupStep

if TYPE_CHECKING:
    from ..context import Context
    from ..runtime.host import HostRuntime

logger = get_logger(__name__)

NODE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+@[A-Za-z0-9_.-]+$")


def is_port_available(port: int, host: str = "") -> bool:
    """端口能否绑定 TCP 监听"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class DistributionSetup(SetupStep):
    """校验节点名和分布式端口，然后启动分布式

    分布式已经在运行时直接返回。
    """

    name = "dist"

    def __init__(self, runtime: "HostRuntime"):
        self.runtime = runtime

    def setup(self, context: "Context") -> None:
        if not NODE_NAME_RE.match(context.node_name):
            raise SetupFailure(("invalid_node_name", context.node_name))

        if self.runtime.node_name is not None:
            logger.debug(f"[Dist] Distribution already running as {self.runtime.node_name}")
            return

        port = context.dist_port
        if port:
            logger.debug(f"[Dist] Checking distribution port {port}")
            if not is_port_available(port):
                raise SetupFailure(("dist_port_already_used", port))

        self.runtime.start_distribution(context.node_name)
