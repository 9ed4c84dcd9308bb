# launch_engine/network_launcher.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .contexts import ConsensusNodeContext, ExecutionNodeContext, KeystoreDirpaths
from .teku_launcher import TekuLauncher


@dataclass(frozen=True)
class ParticipantSpec:
    service_id: str
    el_context: ExecutionNodeContext
    keystores: KeystoreDirpaths


def launch_participant_network(
    launcher: TekuLauncher,
    participants: Sequence[ParticipantSpec],
) -> List[ConsensusNodeContext]:
    """
    Launch nodes one after another. The first becomes the bootnode and every
    later node bootstraps from it. The first failure is raised as-is; nodes
    already started are left running.
    """
    contexts: List[ConsensusNodeContext] = []
    bootnode: Optional[ConsensusNodeContext] = None
    for participant in participants:
        context = launcher.launch(
            participant.service_id,
            bootnode,
            participant.el_context,
            participant.keystores,
        )
        if bootnode is None:
            bootnode = context
        contexts.append(context)
    return contexts


__all__ = ["ParticipantSpec", "launch_participant_network"]
