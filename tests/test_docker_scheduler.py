import ipaddress
from pathlib import PurePosixPath

import pytest
from docker.errors import APIError, NotFound

from launch_engine.container_spec import ContainerLaunchDescription
from launch_engine.errors import StagingError
from launch_engine.launch_config import LauncherConfig
from launch_engine.scheduler import DockerScheduler


class FakeContainer:
    short_id = "abc123"

    def __init__(self):
        self.started = False

    def start(self):
        self.started = True


class FakeNetwork:
    def __init__(self, used=(), subnet="172.28.0.0/29", gateway="172.28.0.1"):
        self.attrs = {
            "IPAM": {"Config": [{"Subnet": subnet, "Gateway": gateway}]},
            "Containers": {f"c{i}": {"IPv4Address": f"{ip}/29"} for i, ip in enumerate(used)},
        }
        self.connected = []
        self.connect_error = None

    def reload(self):
        return None

    def connect(self, container, ipv4_address=None):
        if self.connect_error:
            raise self.connect_error
        self.connected.append((container, ipv4_address))


class FakeNetworks:
    def __init__(self, network=None):
        self.network = network
        self.created = []

    def get(self, name):
        if self.network is None:
            raise NotFound(f"network {name} not found")
        return self.network

    def create(self, name, driver, ipam=None):
        self.created.append((name, driver, ipam))
        if not ipam or not ipam.get("Config"):
            # Without a pool the daemon picks a subnet and refuses fixed addresses
            self.network = FakeNetwork(subnet=None, gateway=None)
            return self.network
        pool = ipam["Config"][0]
        subnet = ipaddress.ip_network(pool["Subnet"])
        self.network = FakeNetwork(subnet=str(subnet), gateway=str(next(subnet.hosts())))
        return self.network


class FakeContainers:
    def __init__(self):
        self.create_calls = []

    def create(self, image, **kwargs):
        self.create_calls.append((image, kwargs))
        return FakeContainer()


class FakeDockerClient:
    def __init__(self, network=None):
        self.networks = FakeNetworks(network)
        self.containers = FakeContainers()


def describe_with(record):
    def describe(private_ip, shared_dir):
        record.append((private_ip, shared_dir))
        return ContainerLaunchDescription(
            image="consensys/teku:latest",
            used_ports=LauncherConfig().used_ports(),
            prelaunch_steps=(("cp", "-R", "/shared/validator-keys", "$HOME/validator-keys"),),
            exec_step=("/opt/teku/bin/teku", "--rest-api-port=4000"),
            verbatim_args={"$HOME/validator-keys"},
        )

    return describe


def test_create_instance_allocates_ip_and_mounts_shared_dir(tmp_path):
    network = FakeNetwork(used=["172.28.0.2"])
    client = FakeDockerClient(network)
    scheduler = DockerScheduler("devnet", tmp_path / "shared", client=client)
    calls = []

    handle = scheduler.create_instance("cl-client-0", describe_with(calls))

    private_ip, shared_dir = calls[0]
    assert private_ip == "172.28.0.3"
    assert shared_dir.path_on_launcher == tmp_path / "shared" / "cl-client-0"
    assert shared_dir.path_on_service == PurePosixPath("/shared")

    image, kwargs = client.containers.create_calls[0]
    assert image == "consensys/teku:latest"
    assert kwargs["entrypoint"] == ["sh", "-c"]
    assert kwargs["command"] == [
        "cp -R /shared/validator-keys $HOME/validator-keys && /opt/teku/bin/teku --rest-api-port=4000"
    ]
    assert kwargs["ports"] == {"9000/tcp": None, "9000/udp": None, "4000/tcp": None}
    assert list(kwargs["volumes"].values()) == [{"bind": "/shared", "mode": "rw"}]

    assert network.connected[0][1] == "172.28.0.3"
    assert network.connected[0][0].started
    assert handle.private_ip_address == "172.28.0.3"
    assert handle.private_ports["http"].number == 4000


def test_missing_network_is_created_with_configured_subnet(tmp_path):
    client = FakeDockerClient(network=None)
    scheduler = DockerScheduler("devnet", tmp_path / "shared", subnet="10.77.0.0/24", client=client)

    handle = scheduler.create_instance("cl-client-0", describe_with([]))

    name, driver, ipam = client.networks.created[0]
    assert (name, driver) == ("devnet", "bridge")
    assert [pool["Subnet"] for pool in ipam["Config"]] == ["10.77.0.0/24"]
    assert handle.private_ip_address == "10.77.0.2"
    assert client.networks.network.connected[0][1] == "10.77.0.2"


def test_network_without_subnet_is_rejected(tmp_path):
    network = FakeNetwork(subnet=None, gateway=None)
    client = FakeDockerClient(network)
    scheduler = DockerScheduler("devnet", tmp_path / "shared", client=client)

    with pytest.raises(RuntimeError, match="no IPv4 subnet"):
        scheduler.create_instance("cl-client-0", describe_with([]))
    assert client.containers.create_calls == []


def test_invalid_subnet_rejected_up_front(tmp_path):
    with pytest.raises(ValueError):
        DockerScheduler("devnet", tmp_path / "shared", subnet="not-a-subnet", client=FakeDockerClient())


def test_exhausted_subnet(tmp_path):
    network = FakeNetwork(used=["172.28.0.2", "172.28.0.3", "172.28.0.4", "172.28.0.5", "172.28.0.6"])
    scheduler = DockerScheduler("devnet", tmp_path / "shared", client=FakeDockerClient(network))
    with pytest.raises(RuntimeError):
        scheduler.create_instance("cl-client-0", describe_with([]))


def test_describe_errors_propagate_unchanged(tmp_path):
    client = FakeDockerClient(FakeNetwork())
    scheduler = DockerScheduler("devnet", tmp_path / "shared", client=client)
    error = StagingError("keys missing")

    def describe(private_ip, shared_dir):
        raise error

    with pytest.raises(StagingError) as excinfo:
        scheduler.create_instance("cl-client-0", describe)
    assert excinfo.value is error
    assert client.containers.create_calls == []


def test_failed_connect_releases_ip(tmp_path):
    network = FakeNetwork()
    network.connect_error = APIError("address already in use")
    scheduler = DockerScheduler("devnet", tmp_path / "shared", client=FakeDockerClient(network))

    with pytest.raises(APIError):
        scheduler.create_instance("cl-client-0", describe_with([]))

    network.connect_error = None
    calls = []
    scheduler.create_instance("cl-client-1", describe_with(calls))
    assert calls[0][0] == "172.28.0.2"
