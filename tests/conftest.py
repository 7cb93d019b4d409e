"""Pytest 配置"""

from pathlib import Path

import pytest

from prelaunch.context import Context
from prelaunch.runtime import HostRuntime, bootstrap
from prelaunch.telemetry import metrics


@pytest.fixture(autouse=True)
def reset_state():
    """每次测试前后重置指标和进程级 sequencer"""
    metrics.reset()
    bootstrap._reset_for_testing()
    yield
    metrics.reset()
    bootstrap._reset_for_testing()


@pytest.fixture
def runtime():
    """创建测试用 HostRuntime"""
    return HostRuntime()


@pytest.fixture
def make_context(tmp_path: Path):
    """构造测试用 Context 的工厂"""

    def _make(**overrides) -> Context:
        fields = {
            "node_name": "rabbit@testhost",
            "data_dir": tmp_path / "data",
            "pid_file": tmp_path / "run" / "rabbit.pid",
            "dist_port": 0,
        }
        fields.update(overrides)
        return Context(**fields)

    return _make
