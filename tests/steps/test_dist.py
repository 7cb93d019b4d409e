"""DistributionSetup 测试"""

import socket

import pytest

from prelaunch.errors import SetupFailure
from prelaunch.runtime import NodeIdentity
from prelaunch.steps import DistributionSetup
from prelaunch.steps.dist import is_port_available


@pytest.fixture
def busy_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("", 0))
        sock.listen()
        yield sock.getsockname()[1]


class TestDistributionSetup:
    def test_starts_distribution(self, runtime, make_context):
        DistributionSetup(runtime).setup(make_context(dist_port=0))

        assert runtime.node_identity is NodeIdentity.RESOLVED
        assert runtime.node_name == "rabbit@testhost"

    def test_invalid_node_name(self, runtime, make_context):
        with pytest.raises(SetupFailure) as exc_info:
            DistributionSetup(runtime).setup(make_context(node_name="no-host"))

        assert exc_info.value.reason == ("invalid_node_name", "no-host")
        assert runtime.node_identity is NodeIdentity.UNRESOLVED

    def test_port_in_use(self, runtime, make_context, busy_port):
        assert is_port_available(busy_port) is False

        with pytest.raises(SetupFailure) as exc_info:
            DistributionSetup(runtime).setup(make_context(dist_port=busy_port))

        assert exc_info.value.reason == ("dist_port_already_used", busy_port)
        assert runtime.node_identity is NodeIdentity.UNRESOLVED

    def test_already_running_skips_port_check(self, runtime, make_context, busy_port):
        runtime.start_distribution("rabbit@testhost")

        DistributionSetup(runtime).setup(make_context(dist_port=busy_port))

        assert runtime.node_name == "rabbit@testhost"
