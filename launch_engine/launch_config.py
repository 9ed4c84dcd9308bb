# launch_engine/launch_config.py

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

PROTOCOL_TCP = "TCP"
PROTOCOL_UDP = "UDP"

TCP_DISCOVERY_PORT_ID = "tcp-discovery"
UDP_DISCOVERY_PORT_ID = "udp-discovery"
HTTP_PORT_ID = "http"

# Placeholder account; override per environment via "fee_recipient".
DEFAULT_FEE_RECIPIENT = "0x0000000000000000000000000000000000000001"


@dataclass(frozen=True)
class PortSpec:
    number: int
    protocol: str = PROTOCOL_TCP

    def __post_init__(self) -> None:
        if self.protocol not in (PROTOCOL_TCP, PROTOCOL_UDP):
            raise ValueError(f"Unsupported port protocol '{self.protocol}'")
        if not 0 < int(self.number) < 65536:
            raise ValueError(f"Port number out of range: {self.number}")

    @property
    def docker_key(self) -> str:
        return f"{self.number}/{self.protocol.lower()}"


@dataclass(frozen=True)
class LauncherConfig:
    """
    Launcher-wide constants for a Teku node.

    One instance is shared by every launch; nothing in here changes per call.
    Tests build their own with a short retry budget.
    """

    image: str = "consensys/teku:latest"
    binary_path: str = "/opt/teku/bin/teku"
    # The container runs as the "teku" user so it can't write to root-owned dirs
    data_dirpath: str = "/opt/teku/consensus-data"
    discovery_port: int = 9000
    http_port: int = 4000
    # Teku takes ~35s to bring its HTTP server up
    max_healthcheck_attempts: int = 60
    healthcheck_interval: float = 1.0
    # Expanded by the container shell, which runs as the unprivileged user
    dest_keys_dirpath: str = "$HOME/validator-keys"
    dest_secrets_dirpath: str = "$HOME/validator-secrets"
    fee_recipient: str = DEFAULT_FEE_RECIPIENT

    def __post_init__(self) -> None:
        if self.max_healthcheck_attempts < 1:
            raise ValueError("max_healthcheck_attempts must be at least 1")
        if self.healthcheck_interval < 0:
            raise ValueError("healthcheck_interval must not be negative")

    def used_ports(self) -> Dict[str, PortSpec]:
        return {
            TCP_DISCOVERY_PORT_ID: PortSpec(self.discovery_port, PROTOCOL_TCP),
            UDP_DISCOVERY_PORT_ID: PortSpec(self.discovery_port, PROTOCOL_UDP),
            HTTP_PORT_ID: PortSpec(self.http_port, PROTOCOL_TCP),
        }

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "LauncherConfig":
        """Build a config from a merged JSON mapping, ignoring unrelated keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in known or value is None:
                continue
            default = known[key].default
            if isinstance(default, int):
                kwargs[key] = int(value)
            elif isinstance(default, float):
                kwargs[key] = float(value)
            else:
                kwargs[key] = str(value)
        return cls(**kwargs)


__all__ = [
    "PROTOCOL_TCP",
    "PROTOCOL_UDP",
    "TCP_DISCOVERY_PORT_ID",
    "UDP_DISCOVERY_PORT_ID",
    "HTTP_PORT_ID",
    "DEFAULT_FEE_RECIPIENT",
    "PortSpec",
    "LauncherConfig",
]
