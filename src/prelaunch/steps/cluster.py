"""Cluster - 集群状态检查

数据目录中记录所属节点和已知集群成员。
数据目录属于其它节点时拒绝启动。
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from ..config import CLUSTER_STATE_FILE
from ..errors import SetupFailure
from ..telemetry import get_logger
from .base import SetupStep

if TYPE_CHECKING:
    from ..context import Context
    from ..runtime.host import HostRuntime

logger = get_logger(__name__)


class ClusterState(BaseModel):
    """数据目录中的集群状态文件"""

    node: str
    members: list[str]


class ClusterSetup(SetupStep):
    """检查数据目录归属，首轮启动时初始化集群状态文件"""

    name = "cluster"

    def __init__(self, runtime: "HostRuntime"):
        self.runtime = runtime

    def setup(self, context: "Context") -> None:
        path = context.data_dir / CLUSTER_STATE_FILE

        if path.exists():
            try:
                state = ClusterState.model_validate_json(path.read_bytes())
            except (OSError, ValidationError) as e:
                raise SetupFailure(("invalid_cluster_state", str(path), str(e))) from e
            if state.node != context.node_name:
                raise SetupFailure(("inconsistent_node_name", state.node, context.node_name))
            logger.debug(f"[Cluster] Known members: {state.members}")
        elif context.initial_pass:
            state = ClusterState(node=context.node_name, members=self._members(context))
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
            logger.info(f"[Cluster] Initialized cluster state in {path}")
        else:
            raise SetupFailure(("invalid_cluster_state", str(path), "missing"))

        self.runtime.set_env("prelaunch", "cluster_members", tuple(state.members))

    def _members(self, context: "Context") -> list[str]:
        config = self.runtime.get_env("prelaunch", "config")
        configured = list(getattr(config, "cluster_nodes", []))
        if context.node_name not in configured:
            configured.append(context.node_name)
        return configured
