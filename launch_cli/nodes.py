"""CLI utility for listing nodes recorded in the local launch registry."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from launch_engine.config_loader import load_settings
from launch_engine.node_registry import REGISTRY_FILE_DEFAULT, NodeRegistry

console = Console()


def build_table(entries) -> Table:
    table = Table(title="Launched Teku nodes")
    table.add_column("Service ID", style="cyan")
    table.add_column("Bootnode")
    table.add_column("Address")
    table.add_column("Launched (UTC)")
    table.add_column("ENR", overflow="fold")
    table.add_column("Bootstrapped from", overflow="fold")
    for entry in entries:
        context = entry.get("context", {})
        launched = datetime.fromtimestamp(entry.get("launched_at", 0), tz=timezone.utc)
        table.add_row(
            str(entry.get("service_id")),
            "yes" if entry.get("bootnode") else "",
            f"{context.get('ip_address')}:{context.get('http_port')}",
            launched.strftime("%Y-%m-%d %H:%M:%S"),
            str(context.get("enr")),
            entry.get("bootnode_enr") or "",
        )
    return table


def main(argv=None):
    parser = argparse.ArgumentParser(description="List nodes launched from this machine")
    parser.add_argument("--registry-file", default=None, help="Registry JSON (defaults to ~/.teku-launcher/data/nodes.json)")
    args = parser.parse_args(argv)

    registry_file = args.registry_file or load_settings().get("registry_file") or REGISTRY_FILE_DEFAULT
    entries = NodeRegistry(registry_file).list_nodes()
    if not entries:
        console.print("[yellow]No nodes recorded yet.[/yellow]")
        return
    console.print(build_table(entries))


if __name__ == "__main__":
    main(sys.argv[1:])
