# launch_engine/scheduler.py

from __future__ import annotations

import ipaddress
import logging
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Set

import docker
from docker.errors import NotFound
from docker.types import IPAMConfig, IPAMPool

from .container_spec import ContainerLaunchDescription
from .launch_config import PortSpec
from .shared_path import SharedPath

DescriptionBuilder = Callable[[str, SharedPath], ContainerLaunchDescription]

SHARED_DIR_MOUNT_ON_SERVICE = "/shared"
SERVICE_LABEL = "teku-launcher.service-id"
DEFAULT_SUBNET = "172.28.0.0/16"


@dataclass(frozen=True)
class RunningInstanceHandle:
    service_id: str
    private_ip_address: str
    private_ports: Mapping[str, PortSpec]

    def __post_init__(self) -> None:
        object.__setattr__(self, "private_ports", MappingProxyType(dict(self.private_ports)))


class Scheduler:
    """
    Starts services from a container description.

    ``describe`` is called exactly once, with the IP the service will have and
    its freshly created shared directory, before the container is created.
    Whatever ``describe`` raises must reach the caller unchanged.
    """

    def create_instance(self, service_id: str, describe: DescriptionBuilder) -> RunningInstanceHandle:
        raise NotImplementedError


class DockerScheduler(Scheduler):
    """
    Runs each service as a container on a user-defined Docker network.

    IPs are handed out from the network's subnet ahead of container creation
    so the node can advertise its own address on the command line.
    """

    def __init__(
        self,
        network_name: str,
        shared_root: Path | str,
        subnet: str = DEFAULT_SUBNET,
        client=None,
        logger: Optional[logging.Logger] = None,
    ):
        self.network_name = network_name
        self.shared_root = Path(shared_root)
        self.subnet = str(ipaddress.ip_network(subnet))
        self.client = client or docker.from_env()
        self.logger = logger or logging.getLogger("teku_launcher.scheduler")
        self._lock = threading.Lock()
        self._allocated: Set[str] = set()

    # ------------------------------------------------------------------ #
    # Network helpers
    # ------------------------------------------------------------------ #
    def _get_network(self):
        try:
            return self.client.networks.get(self.network_name)
        except NotFound:
            # Fixed container IPs are only accepted on networks with a user-configured subnet
            self.logger.info("Creating docker network %s on %s", self.network_name, self.subnet)
            return self.client.networks.create(
                self.network_name,
                driver="bridge",
                ipam=IPAMConfig(pool_configs=[IPAMPool(subnet=self.subnet)]),
            )

    def _used_ips(self, network) -> Set[str]:
        network.reload()
        used = set()
        containers = network.attrs.get("Containers") or {}
        for endpoint in containers.values():
            address = (endpoint.get("IPv4Address") or "").split("/")[0]
            if address:
                used.add(address)
        return used

    def _allocate_ip(self, network) -> str:
        configs = (network.attrs.get("IPAM") or {}).get("Config") or []
        subnets = [cfg for cfg in configs if cfg.get("Subnet")]
        if not subnets:
            raise RuntimeError(f"Docker network '{self.network_name}' has no IPv4 subnet configured")
        subnet = ipaddress.ip_network(subnets[0]["Subnet"])
        gateway = subnets[0].get("Gateway")
        with self._lock:
            taken = self._used_ips(network) | self._allocated
            if gateway:
                taken.add(gateway)
            for host in subnet.hosts():
                candidate = str(host)
                if candidate not in taken:
                    self._allocated.add(candidate)
                    return candidate
        raise RuntimeError(f"No free IP left in subnet {subnet} of network '{self.network_name}'")

    def _release_ip(self, ip: str) -> None:
        with self._lock:
            self._allocated.discard(ip)

    # ------------------------------------------------------------------ #
    # Service creation
    # ------------------------------------------------------------------ #
    def _make_shared_dir(self, service_id: str) -> SharedPath:
        path_on_launcher = self.shared_root / service_id
        path_on_launcher.mkdir(parents=True, exist_ok=False)
        return SharedPath(
            path_on_launcher=path_on_launcher,
            path_on_service=PurePosixPath(SHARED_DIR_MOUNT_ON_SERVICE),
        )

    def create_instance(self, service_id: str, describe: DescriptionBuilder) -> RunningInstanceHandle:
        network = self._get_network()
        private_ip = self._allocate_ip(network)
        try:
            shared_dir = self._make_shared_dir(service_id)
            description = describe(private_ip, shared_dir)

            container = self.client.containers.create(
                description.image,
                command=list(description.cmd),
                entrypoint=list(description.entrypoint),
                name=service_id,
                detach=True,
                ports={spec.docker_key: None for spec in description.used_ports.values()},
                volumes={
                    str(shared_dir.path_on_launcher.resolve()): {
                        "bind": SHARED_DIR_MOUNT_ON_SERVICE,
                        "mode": "rw",
                    }
                },
                labels={SERVICE_LABEL: service_id},
            )
            network.connect(container, ipv4_address=private_ip)
            container.start()
        finally:
            # Once connected the address shows up in the network's own listing
            self._release_ip(private_ip)

        self.logger.info("Started container %s for %s at %s", container.short_id, service_id, private_ip)
        return RunningInstanceHandle(
            service_id=service_id,
            private_ip_address=private_ip,
            private_ports=description.used_ports,
        )


__all__ = [
    "DescriptionBuilder",
    "SHARED_DIR_MOUNT_ON_SERVICE",
    "RunningInstanceHandle",
    "Scheduler",
    "DockerScheduler",
]
