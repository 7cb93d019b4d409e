"""prelaunch 配置

配置分为以下几类：
- 环境变量配置：变量前缀、env 配置文件
- 节点配置：节点名、数据目录、分布式端口
- PID 文件配置
- 日志配置：级别、格式
- 集群/特性开关配置：状态文件名
"""

import os
import socket
import tempfile
from pathlib import Path

# === 环境变量配置 ===
ENV_PREFIX = "PRELAUNCH_"  # 所有环境变量的前缀
DEFAULT_ENV_CONFIG_FILE = Path("/etc/prelaunch/prelaunch-env.conf")  # KEY=VALUE 格式

# === 节点配置 ===
DEFAULT_NODE_BASENAME = "prelaunch"
DEFAULT_NODE_HOST = socket.gethostname().split(".")[0] or "localhost"
DEFAULT_DATA_DIR = Path(tempfile.gettempdir()) / "prelaunch"
DEFAULT_DIST_PORT = 25672  # 0 => 跳过端口检查

# === PID 文件配置 ===
PID_FILE_SUFFIX = ".pid"  # 默认 PID 文件: <data_dir>/<node_name>.pid

# === 日志配置 ===
LOG_LEVEL = os.environ.get("PRELAUNCH_LOG_LEVEL", "INFO")  # 日志级别
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "prelaunch"

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集

# === 集群/特性开关配置 ===
CLUSTER_STATE_FILE = "cluster_nodes.json"
FEATURE_FLAGS_FILE = "feature_flags.json"
