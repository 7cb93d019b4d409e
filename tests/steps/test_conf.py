"""ConfigSetup 测试"""

import json

import pytest

from prelaunch.errors import SetupFailure
from prelaunch.steps import ConfigSetup, NodeConfig


class TestConfigSetup:
    def test_defaults_without_file(self, runtime, make_context):
        ConfigSetup(runtime).setup(make_context(config_file=None))

        assert runtime.get_env("prelaunch", "config") == NodeConfig()

    def test_loads_file(self, runtime, make_context, tmp_path):
        path = tmp_path / "node.json"
        path.write_text(json.dumps({"listeners": [5673], "cluster_nodes": ["a@host"]}))

        ConfigSetup(runtime).setup(make_context(config_file=path))

        config = runtime.get_env("prelaunch", "config")
        assert config.listeners == [5673]
        assert config.cluster_nodes == ["a@host"]
        assert config.default_vhost == "/"

    def test_missing_file(self, runtime, make_context, tmp_path):
        path = tmp_path / "missing.json"

        with pytest.raises(SetupFailure) as exc_info:
            ConfigSetup(runtime).setup(make_context(config_file=path))

        assert exc_info.value.reason == ("config_file_not_found", str(path))

    def test_unknown_key(self, runtime, make_context, tmp_path):
        path = tmp_path / "node.json"
        path.write_text(json.dumps({"listenres": [5672]}))

        with pytest.raises(SetupFailure) as exc_info:
            ConfigSetup(runtime).setup(make_context(config_file=path))

        kind, reported_path, details = exc_info.value.reason
        assert kind == "invalid_configuration"
        assert reported_path == str(path)
        assert any(d.startswith("listenres") for d in details)

    def test_out_of_range_value(self, runtime, make_context, tmp_path):
        path = tmp_path / "node.json"
        path.write_text(json.dumps({"memory_high_watermark": 2}))

        with pytest.raises(SetupFailure) as exc_info:
            ConfigSetup(runtime).setup(make_context(config_file=path))

        assert exc_info.value.reason[0] == "invalid_configuration"
        assert runtime.get_env("prelaunch", "config") is None
