# launch_engine/rest_client.py

"""Thin wrapper over the beacon-node REST API endpoints the launcher needs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

HEALTH_ENDPOINT = "/eth/v1/node/health"
IDENTITY_ENDPOINT = "/eth/v1/node/identity"
DEFAULT_REQUEST_TIMEOUT = 5


class RestClientError(RuntimeError):
    pass


class MalformedResponseError(RestClientError):
    pass


@dataclass(frozen=True)
class NodeIdentity:
    enr: str
    peer_id: str = ""
    p2p_addresses: List[str] = field(default_factory=list)
    discovery_addresses: List[str] = field(default_factory=list)


def parse_node_identity(payload: Any) -> NodeIdentity:
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise MalformedResponseError("Identity response has no 'data' object")
    data: Dict[str, Any] = payload["data"]
    enr = data.get("enr")
    if not isinstance(enr, str) or not enr:
        raise MalformedResponseError("Identity response is missing a non-empty 'enr'")
    return NodeIdentity(
        enr=enr,
        peer_id=str(data.get("peer_id") or ""),
        p2p_addresses=list(data.get("p2p_addresses") or []),
        discovery_addresses=list(data.get("discovery_addresses") or []),
    )


class ConsensusRestClient:
    def __init__(
        self,
        ip_address: str,
        port: int,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = f"http://{ip_address}:{port}"
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, endpoint: str) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RestClientError(f"GET {url} failed: {exc}") from exc
        return response

    def check_liveness(self) -> None:
        self._get(HEALTH_ENDPOINT)

    def get_node_identity(self) -> NodeIdentity:
        response = self._get(IDENTITY_ENDPOINT)
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Identity response is not JSON: {exc}") from exc
        return parse_node_identity(payload)


__all__ = [
    "HEALTH_ENDPOINT",
    "IDENTITY_ENDPOINT",
    "RestClientError",
    "MalformedResponseError",
    "NodeIdentity",
    "parse_node_identity",
    "ConsensusRestClient",
]
