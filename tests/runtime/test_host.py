"""HostRuntime 测试"""

import signal
from unittest.mock import Mock, patch

import pytest

from prelaunch.runtime import EmbeddedDatabase, HostRuntime, NodeIdentity


class TestNodeIdentity:
    def test_unresolved_until_distribution_started(self, runtime):
        assert runtime.node_identity is NodeIdentity.UNRESOLVED
        assert runtime.node_name is None

        runtime.start_distribution("rabbit@testhost")

        assert runtime.node_identity is NodeIdentity.RESOLVED
        assert runtime.node_name == "rabbit@testhost"


class TestAppEnv:
    def test_get_set(self, runtime):
        assert runtime.get_env("prelaunch", "data_dir") is None
        assert runtime.get_env("prelaunch", "data_dir", "x") == "x"

        runtime.set_env("prelaunch", "data_dir", "/var/lib/x")

        assert runtime.get_env("prelaunch", "data_dir") == "/var/lib/x"


class TestEmbeddedDatabase:
    def test_stop_is_idempotent(self):
        db = EmbeddedDatabase(running=True)
        db.stop()
        db.stop()
        assert db.running is False

    def test_default_runtime_db(self):
        runtime = HostRuntime()
        runtime.embedded_db.start()
        assert runtime.embedded_db.running is True


class TestShutdown:
    def test_no_func_registered(self, runtime):
        runtime.shutdown("normal")

    def test_bind_process_exit(self, runtime):
        """atexit 和 SIGTERM 都接到 shutdown()"""
        func = Mock()
        runtime.set_shutdown_func(func)

        with patch("prelaunch.runtime.host.atexit.register") as register, patch(
            "prelaunch.runtime.host.signal.signal"
        ) as set_signal:
            runtime.bind_process_exit()

        register.assert_called_once_with(runtime.shutdown, "normal")
        signum, handler = set_signal.call_args.args
        assert signum == signal.SIGTERM

        with pytest.raises(SystemExit) as exc_info:
            handler(signal.SIGTERM, None)

        assert exc_info.value.code == 128 + signal.SIGTERM
        func.assert_called_once_with("sigterm")
