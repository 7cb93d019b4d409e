"""Setup steps - prelaunch 依次调用的协作者"""

from .base import SetupStep
from .bytecode import BytecodeSetup
from .cluster import ClusterSetup
from .conf import ConfigSetup, NodeConfig
from .dist import DistributionSetup
from .feature_flags import FeatureFlagsSetup

__all__ = [
    "SetupStep",
    "BytecodeSetup",
    "ClusterSetup",
    "ConfigSetup",
    "NodeConfig",
    "DistributionSetup",
    "FeatureFlagsSetup",
]
