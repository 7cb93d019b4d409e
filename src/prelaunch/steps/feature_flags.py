"""Feature flags - 加载已开启的 feature flag 列表"""

from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from ..errors import SetupFailure
from ..telemetry import get_logger
from .base import SetupStep

if TYPE_CHECKING:
    from ..context import Context
    from ..runtime.host import HostRuntime

logger = get_logger(__name__)

_FLAGS_ADAPTER = TypeAdapter(list[str])


class FeatureFlagsSetup(SetupStep):
    """加载已开启的 feature flag 并写入宿主 app env

    flags 文件是 flag 名组成的 JSON 数组。
    文件不存在表示新节点，尚未开启任何 flag。
    """

    name = "feature_flags"

    def __init__(self, runtime: "HostRuntime"):
        self.runtime = runtime

    def setup(self, context: "Context") -> None:
        path = context.feature_flags_file
        enabled: list[str] = []

        if path is None:
            logger.debug("[FeatureFlags] No feature flags file configured")
        elif path.exists():
            try:
                enabled = _FLAGS_ADAPTER.validate_json(path.read_bytes())
            except OSError as e:
                raise SetupFailure(("invalid_feature_flags_file", str(path), e.strerror)) from e
            except ValidationError as e:
                raise SetupFailure(
                    ("invalid_feature_flags_file", str(path), _first_error(e))
                ) from e
        elif context.initial_pass:
            logger.debug(f"[FeatureFlags] {path} does not exist yet, starting with no flags")

        self.runtime.set_env("feature_flags", "enabled", frozenset(enabled))
        logger.info(f"[FeatureFlags] {len(enabled)} feature flag(s) enabled")


def _first_error(error: ValidationError) -> str:
    errors = error.errors()
    return errors[0]["msg"] if errors else str(error)
