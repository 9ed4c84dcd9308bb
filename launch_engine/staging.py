# launch_engine/staging.py

"""
Copies genesis and validator keystore material into a service's shared
directory so the node container can read it.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .contexts import GenesisArtifacts, KeystoreDirpaths
from .errors import StagingError
from .shared_path import SharedPath

GENESIS_CONFIG_YML_REL_PATH = "genesis-config.yml"
GENESIS_SSZ_REL_PATH = "genesis.ssz"
VALIDATOR_KEYS_REL_PATH = "validator-keys"
VALIDATOR_SECRETS_REL_PATH = "validator-secrets"


@dataclass(frozen=True)
class StagedPaths:
    genesis_config_yml: SharedPath
    genesis_ssz: SharedPath
    validator_keys: SharedPath
    validator_secrets: SharedPath


def copy_file_to_shared_path(src: Path | str, dest: SharedPath) -> None:
    src_path = Path(src)
    if not src_path.is_file():
        raise StagingError(f"Source file '{src_path}' does not exist or is not a regular file")
    target = Path(dest.path_on_launcher)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, target)
    except OSError as exc:
        raise StagingError(f"Failed to copy '{src_path}' to '{target}': {exc}") from exc


def copy_dir_to_shared_path(src: Path | str, dest: SharedPath) -> None:
    """Recursively copy a directory, keeping its layout and permission bits."""
    src_path = Path(src)
    if not src_path.is_dir():
        raise StagingError(f"Source directory '{src_path}' does not exist or is not a directory")
    target = Path(dest.path_on_launcher)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(src_path, target, copy_function=shutil.copy2)
    except OSError as exc:
        # shutil.Error subclasses OSError and aggregates per-file failures
        raise StagingError(f"Failed to copy directory '{src_path}' to '{target}': {exc}") from exc


def stage_launch_inputs(
    genesis: GenesisArtifacts,
    keystores: KeystoreDirpaths,
    shared_dir: SharedPath,
    logger: Optional[logging.Logger] = None,
) -> StagedPaths:
    staged = StagedPaths(
        genesis_config_yml=shared_dir.child(GENESIS_CONFIG_YML_REL_PATH),
        genesis_ssz=shared_dir.child(GENESIS_SSZ_REL_PATH),
        validator_keys=shared_dir.child(VALIDATOR_KEYS_REL_PATH),
        validator_secrets=shared_dir.child(VALIDATOR_SECRETS_REL_PATH),
    )

    copy_file_to_shared_path(genesis.config_yml_filepath, staged.genesis_config_yml)
    copy_file_to_shared_path(genesis.ssz_filepath, staged.genesis_ssz)
    copy_dir_to_shared_path(keystores.keys_dirpath, staged.validator_keys)
    copy_dir_to_shared_path(keystores.secrets_dirpath, staged.validator_secrets)

    if logger:
        logger.debug("Staged genesis and keystores into %s", shared_dir.path_on_launcher)
    return staged


__all__ = [
    "GENESIS_CONFIG_YML_REL_PATH",
    "GENESIS_SSZ_REL_PATH",
    "VALIDATOR_KEYS_REL_PATH",
    "VALIDATOR_SECRETS_REL_PATH",
    "StagedPaths",
    "copy_file_to_shared_path",
    "copy_dir_to_shared_path",
    "stage_launch_inputs",
]
