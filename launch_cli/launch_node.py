#!/usr/bin/env python3
"""Launch one Teku consensus node and print how to reach it."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich.console import Console
from rich.table import Table

from launch_engine.config_loader import load_node_config
from launch_engine.contexts import ConsensusNodeContext, ExecutionNodeContext, GenesisArtifacts, KeystoreDirpaths
from launch_engine.errors import LaunchSequenceError
from launch_engine.launch_config import LauncherConfig
from launch_engine.logging_utils import configure_logger, parse_level, update_log_level
from launch_engine.node_registry import NodeRegistry
from launch_engine.scheduler import DockerScheduler
from launch_engine.teku_launcher import TekuLauncher

console = Console()


def _level(level_name: str) -> int:
    try:
        return parse_level(level_name)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Teku consensus node launcher")
    parser.add_argument("--config", default=None, help="Path to launcher config JSON")
    parser.add_argument("--service-id", required=True, help="Service ID for the new node")
    parser.add_argument("--el-ip", required=True, help="Execution-layer client IP address")
    parser.add_argument("--el-rpc-port", required=True, type=int, help="Execution-layer client RPC port")
    parser.add_argument("--genesis-config", required=True, help="Path to genesis config YML")
    parser.add_argument("--genesis-ssz", required=True, help="Path to genesis state SSZ")
    parser.add_argument("--keys-dir", required=True, help="Directory holding validator keys")
    parser.add_argument("--secrets-dir", required=True, help="Directory holding validator secrets")
    bootnode = parser.add_mutually_exclusive_group()
    bootnode.add_argument("--bootnode-enr", default=None, help="ENR of an existing node to bootstrap from")
    bootnode.add_argument(
        "--use-registered-bootnode",
        action="store_true",
        help="Bootstrap from the most recent bootnode in the local registry",
    )
    parser.add_argument("--log-level", type=_level, default=logging.INFO, help="Logging verbosity")
    return parser


def render_context(service_id: str, context: ConsensusNodeContext) -> Table:
    table = Table(title=f"Teku node {service_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ENR", context.enr)
    table.add_row("IP address", context.ip_address)
    table.add_row("HTTP port", str(context.http_port))
    return table


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config, settings = load_node_config(args.config)
    except RuntimeError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        return 1

    log_max_bytes = int(config.get("log_max_bytes", settings.get("log_max_bytes", 0)) or 0)
    log_backup_count = int(config.get("log_backup_count", settings.get("log_backup_count", 5)))
    logger = configure_logger(
        "teku_launcher",
        "launcher.log",
        level=args.log_level,
        max_bytes=log_max_bytes if log_max_bytes > 0 else None,
        backup_count=log_backup_count,
    )
    update_log_level(logger, args.log_level)

    try:
        launcher_config = LauncherConfig.from_mapping({**settings, **config})
    except (TypeError, ValueError) as exc:
        console.print(f"[red]❌ Invalid launcher config: {exc}[/red]")
        return 1

    registry = NodeRegistry(config.get("registry_file") or settings["registry_file"], logger=logger)
    bootnode = None
    if args.bootnode_enr:
        # Only the ENR reaches the new node; the address is unknown here and never recorded
        bootnode = ConsensusNodeContext(enr=args.bootnode_enr, ip_address="", http_port=launcher_config.http_port)
    elif args.use_registered_bootnode:
        bootnode = registry.latest_bootnode()
        if bootnode is None:
            console.print("[red]❌ No bootnode recorded in the local registry[/red]")
            return 1

    scheduler = DockerScheduler(
        network_name=config.get("docker_network") or settings["docker_network"],
        shared_root=config.get("shared_root") or settings["shared_root"],
        subnet=config.get("docker_subnet") or settings["docker_subnet"],
        logger=logger,
    )
    launcher = TekuLauncher(
        genesis=GenesisArtifacts(Path(args.genesis_config), Path(args.genesis_ssz)),
        scheduler=scheduler,
        config=launcher_config,
        logger=logger,
    )

    try:
        context = launcher.launch(
            args.service_id,
            bootnode,
            ExecutionNodeContext(args.el_ip, args.el_rpc_port),
            KeystoreDirpaths(Path(args.keys_dir), Path(args.secrets_dir)),
        )
    except LaunchSequenceError as exc:
        console.print(f"[bold red]❌ Launch of {args.service_id} failed during {exc.stage}:[/bold red] {exc}")
        return 1

    registry.register_node(args.service_id, context, bootnode_enr=bootnode.enr if bootnode else None)
    console.print(render_context(args.service_id, context))
    return 0


if __name__ == "__main__":
    sys.exit(main())
