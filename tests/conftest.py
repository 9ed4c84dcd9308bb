from pathlib import Path, PurePosixPath

import pytest

from launch_engine.contexts import ExecutionNodeContext, GenesisArtifacts, KeystoreDirpaths
from launch_engine.launch_config import LauncherConfig
from launch_engine.rest_client import NodeIdentity
from launch_engine.scheduler import RunningInstanceHandle, Scheduler
from launch_engine.shared_path import SharedPath


class FakeScheduler(Scheduler):
    def __init__(self, shared_root: Path, private_ip="10.0.0.7", drop_ports=(), remap_ports=None, error=None):
        self.shared_root = shared_root
        self.private_ip = private_ip
        self.drop_ports = set(drop_ports)
        self.remap_ports = dict(remap_ports or {})
        self.error = error
        self.descriptions = []

    def create_instance(self, service_id, describe):
        if self.error is not None:
            raise self.error
        shared_dir = SharedPath(self.shared_root / service_id, PurePosixPath("/shared"))
        shared_dir.path_on_launcher.mkdir(parents=True)
        description = describe(self.private_ip, shared_dir)
        self.descriptions.append(description)
        ports = {name: spec for name, spec in description.used_ports.items() if name not in self.drop_ports}
        ports.update(self.remap_ports)
        return RunningInstanceHandle(service_id, self.private_ip, ports)


class FakeRestClient:
    def __init__(self, failures_before_live=0, identity=None, identity_error=None):
        self.failures_before_live = failures_before_live
        self.identity = identity or NodeIdentity(enr="enr:NEW")
        self.identity_error = identity_error
        self.liveness_calls = 0
        self.identity_calls = 0
        self.address = None

    def check_liveness(self):
        self.liveness_calls += 1
        if self.liveness_calls <= self.failures_before_live:
            raise ConnectionError(f"refused #{self.liveness_calls}")

    def get_node_identity(self):
        self.identity_calls += 1
        if self.identity_error is not None:
            raise self.identity_error
        return self.identity


@pytest.fixture
def launch_inputs(tmp_path):
    genesis_dir = tmp_path / "genesis"
    genesis_dir.mkdir()
    config_yml = genesis_dir / "config.yaml"
    config_yml.write_text("PRESET_BASE: minimal\n")
    ssz = genesis_dir / "genesis.ssz"
    ssz.write_bytes(b"\x00\x01\x02")

    keys = tmp_path / "keystores" / "teku-keys"
    secrets = tmp_path / "keystores" / "teku-secrets"
    (keys / "nested").mkdir(parents=True)
    secrets.mkdir(parents=True)
    (keys / "0xabc.json").write_text("{}")
    (keys / "nested" / "0xdef.json").write_text("{}")
    (secrets / "0xabc.txt").write_text("secret")

    return {
        "genesis": GenesisArtifacts(config_yml, ssz),
        "keystores": KeystoreDirpaths(keys, secrets),
        "el_context": ExecutionNodeContext("10.0.0.5", 8551),
    }


@pytest.fixture
def fast_config():
    return LauncherConfig(max_healthcheck_attempts=3, healthcheck_interval=0.0)


@pytest.fixture
def fake_scheduler(tmp_path):
    return FakeScheduler(tmp_path / "shared")


@pytest.fixture
def make_scheduler(tmp_path):
    def _make(**kwargs):
        return FakeScheduler(tmp_path / "shared", **kwargs)

    return _make


@pytest.fixture
def make_rest_client():
    def _make(**kwargs):
        client = FakeRestClient(**kwargs)

        def factory(ip_address, port):
            client.address = (ip_address, port)
            return client

        return client, factory

    return _make
