# launch_engine/node_registry.py

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

from launch_engine.config_loader import DATA_DIR
from launch_engine.contexts import ConsensusNodeContext

REGISTRY_FILE_DEFAULT = DATA_DIR / "nodes.json"


class NodeRegistry:
    """
    Record of nodes launched from this machine with simple persistence to disk.
    Lets a later invocation bootstrap from a node an earlier one started.
    """

    def __init__(self, registry_file: Path | str = REGISTRY_FILE_DEFAULT, logger=None):
        self.registry_file = Path(registry_file)
        self.logger = logger
        self._lock = threading.Lock()
        self._nodes: Dict[str, Dict[str, object]] = {}
        self._load()

    # ------------------------------------------------------------------ #
    # Persistence helpers
    # ------------------------------------------------------------------ #
    def _load(self) -> None:
        if not self.registry_file.exists():
            return
        try:
            with open(self.registry_file, "r") as handle:
                payload = json.load(handle)
            self._nodes = dict(payload.get("nodes", {}))
        except (OSError, ValueError) as exc:
            if self.logger:
                self.logger.warning("Failed to load node registry: %s", exc)

    def _persist(self) -> None:
        self.registry_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.registry_file, "w") as handle:
            json.dump({"nodes": self._nodes}, handle, indent=2)

    # ------------------------------------------------------------------ #
    # Node management
    # ------------------------------------------------------------------ #
    def register_node(
        self,
        service_id: str,
        context: ConsensusNodeContext,
        bootnode_enr: Optional[str] = None,
    ) -> Dict[str, object]:
        """A node launched without ``bootnode_enr`` is itself a bootnode."""
        entry = {
            "service_id": service_id,
            "context": context.to_dict(),
            "bootnode": bootnode_enr is None,
            "bootnode_enr": bootnode_enr,
            "launched_at": int(time.time()),
        }
        with self._lock:
            self._nodes[service_id] = entry
            self._persist()
        if self.logger:
            self.logger.info("Registered node %s (enr=%s address=%s)", service_id, context.enr, context.ip_address)
        return entry

    def get_node(self, service_id: str) -> Optional[ConsensusNodeContext]:
        with self._lock:
            entry = self._nodes.get(service_id)
            return ConsensusNodeContext.from_dict(entry["context"]) if entry else None

    def list_nodes(self) -> List[Dict[str, object]]:
        with self._lock:
            return sorted(self._nodes.values(), key=lambda item: item.get("launched_at", 0))

    def latest_bootnode(self) -> Optional[ConsensusNodeContext]:
        bootnodes = [entry for entry in self.list_nodes() if entry.get("bootnode")]
        if not bootnodes:
            return None
        return ConsensusNodeContext.from_dict(bootnodes[-1]["context"])


__all__ = ["NodeRegistry", "REGISTRY_FILE_DEFAULT"]
