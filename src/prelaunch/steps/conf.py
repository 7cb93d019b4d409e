"""Conf - 节点配置检查和加载"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import SetupFailure
from ..telemetry import get_logger
from .base import SetupStep

if TYPE_CHECKING:
    from ..context import Context
    from ..runtime.host import HostRuntime

logger = get_logger(__name__)


class NodeConfig(BaseModel):
    """节点配置文件结构（不允许未知字段）"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    listeners: list[int] = Field(default_factory=lambda: [5672])
    cluster_nodes: list[str] = Field(default_factory=list)
    memory_high_watermark: float = Field(default=0.4, gt=0, le=1)
    default_vhost: str = "/"


class ConfigSetup(SetupStep):
    """校验 JSON 配置文件，并把解析结果写入宿主 app env"""

    name = "conf"

    def __init__(self, runtime: "HostRuntime"):
        self.runtime = runtime

    def setup(self, context: "Context") -> None:
        path = context.config_file
        if path is None:
            logger.debug("[Conf] No configuration file, using defaults")
            config = NodeConfig()
        else:
            if not path.is_file():
                raise SetupFailure(("config_file_not_found", str(path)))
            logger.debug(f"[Conf] Loading configuration from {path}")
            try:
                config = NodeConfig.model_validate_json(path.read_bytes())
            except OSError as e:
                raise SetupFailure(("invalid_configuration", str(path), [e.strerror])) from e
            except ValidationError as e:
                details = [
                    f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                    for err in e.errors()
                ]
                raise SetupFailure(("invalid_configuration", str(path), details)) from e

        self.runtime.set_env("prelaunch", "config", config)
