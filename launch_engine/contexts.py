# launch_engine/contexts.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Mapping


@dataclass(frozen=True)
class ConsensusNodeContext:
    """
    What other launches need to reach a running consensus node.

    Returned by a successful launch and passed as the bootnode context of
    the next one.
    """

    enr: str
    ip_address: str
    http_port: int

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "ConsensusNodeContext":
        return cls(
            enr=str(payload["enr"]),
            ip_address=str(payload["ip_address"]),
            http_port=int(payload["http_port"]),
        )


@dataclass(frozen=True)
class ExecutionNodeContext:
    ip_address: str
    rpc_port: int

    @property
    def rpc_url(self) -> str:
        return f"http://{self.ip_address}:{self.rpc_port}"


@dataclass(frozen=True)
class KeystoreDirpaths:
    keys_dirpath: Path
    secrets_dirpath: Path


@dataclass(frozen=True)
class GenesisArtifacts:
    config_yml_filepath: Path
    ssz_filepath: Path


__all__ = [
    "ConsensusNodeContext",
    "ExecutionNodeContext",
    "KeystoreDirpaths",
    "GenesisArtifacts",
]
