# launch_engine/teku_launcher.py

"""
Launch sequence for a single Teku consensus node.

    staging -> configuring -> scheduling -> waiting_for_availability
            -> resolving_identity -> ready

Any failure moves the launch to ``failed`` and is raised to the caller;
nothing already created is torn down.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Callable, Optional

from .availability_waiter import wait_for_availability
from .container_spec import ContainerLaunchDescription, LaunchRequest
from .contexts import ConsensusNodeContext, ExecutionNodeContext, GenesisArtifacts, KeystoreDirpaths
from .errors import ConfigurationError, IdentityQueryError, LaunchError, LaunchSequenceError
from .launch_config import HTTP_PORT_ID, LauncherConfig
from .rest_client import ConsensusRestClient
from .scheduler import Scheduler
from .shared_path import SharedPath
from .staging import stage_launch_inputs

RestClientFactory = Callable[[str, int], object]


class LaunchStage(str, Enum):
    STAGING = "staging"
    CONFIGURING = "configuring"
    SCHEDULING = "scheduling"
    WAITING_FOR_AVAILABILITY = "waiting_for_availability"
    RESOLVING_IDENTITY = "resolving_identity"
    READY = "ready"
    FAILED = "failed"


class TekuLauncher:
    def __init__(
        self,
        genesis: GenesisArtifacts,
        scheduler: Scheduler,
        config: Optional[LauncherConfig] = None,
        rest_client_factory: RestClientFactory = ConsensusRestClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.genesis = genesis
        self.scheduler = scheduler
        self.config = config or LauncherConfig()
        self.rest_client_factory = rest_client_factory
        self.logger = logger or logging.getLogger("teku_launcher.launcher")

    def _enter(self, service_id: str, stage: LaunchStage) -> None:
        self.logger.info("[%s] %s", service_id, stage.value)

    def _describe(
        self,
        service_id: str,
        request: LaunchRequest,
        private_ip: str,
        shared_dir: SharedPath,
    ) -> ContainerLaunchDescription:
        self._enter(service_id, LaunchStage.STAGING)
        try:
            staged = stage_launch_inputs(request.genesis, request.keystores, shared_dir, self.logger)
        except LaunchSequenceError as exc:
            exc.service_id = service_id
            raise

        self._enter(service_id, LaunchStage.CONFIGURING)
        description = request.finalize(private_ip, staged)
        self.logger.debug("[%s] command: %s", service_id, description.command_line)
        self._enter(service_id, LaunchStage.SCHEDULING)
        return description

    def launch(
        self,
        service_id: str,
        bootnode_context: Optional[ConsensusNodeContext],
        el_context: ExecutionNodeContext,
        keystores: KeystoreDirpaths,
    ) -> ConsensusNodeContext:
        """
        Start a Teku node and return its context once its ENR is known.

        ``bootnode_context`` of None launches the node as the network's bootnode.
        """
        request = LaunchRequest(
            el_context=el_context,
            genesis=self.genesis,
            keystores=keystores,
            config=self.config,
            bootnode_context=bootnode_context,
        )
        self.logger.info(
            "🚀 Launching Teku node %s | el=%s bootnode=%s",
            service_id,
            el_context.rpc_url,
            bootnode_context.enr if bootnode_context else "none",
        )
        try:
            context = self._run(service_id, request)
        except LaunchSequenceError as exc:
            self.logger.error("[%s] %s: launch failed during %s: %s", service_id, LaunchStage.FAILED.value, exc.stage, exc)
            raise
        self._enter(service_id, LaunchStage.READY)
        return context

    def _run(self, service_id: str, request: LaunchRequest) -> ConsensusNodeContext:
        try:
            handle = self.scheduler.create_instance(service_id, partial(self._describe, service_id, request))
        except LaunchSequenceError:
            raise
        except Exception as exc:
            raise LaunchError(
                f"An error occurred launching the Teku CL client with service ID '{service_id}': {exc}",
                service_id=service_id,
            ) from exc

        http_port = handle.private_ports.get(HTTP_PORT_ID)
        if http_port is None:
            raise ConfigurationError(
                f"Expected new Teku service '{service_id}' to have port with ID '{HTTP_PORT_ID}', but none was found",
                service_id=service_id,
                stage=LaunchStage.SCHEDULING.value,
            )
        if http_port.number != self.config.http_port:
            raise ConfigurationError(
                f"Teku service '{service_id}' exposes '{HTTP_PORT_ID}' on {http_port.number}, "
                f"expected {self.config.http_port}",
                service_id=service_id,
                stage=LaunchStage.SCHEDULING.value,
            )

        rest_client = self.rest_client_factory(handle.private_ip_address, http_port.number)

        self._enter(service_id, LaunchStage.WAITING_FOR_AVAILABILITY)
        try:
            attempts = wait_for_availability(
                rest_client,
                self.config.max_healthcheck_attempts,
                self.config.healthcheck_interval,
                self.logger,
            )
        except LaunchSequenceError as exc:
            exc.service_id = service_id
            raise
        self.logger.info("✅ [%s] REST API up at %s:%s after %d attempt(s)", service_id, handle.private_ip_address, http_port.number, attempts)

        self._enter(service_id, LaunchStage.RESOLVING_IDENTITY)
        try:
            identity = rest_client.get_node_identity()
        except Exception as exc:
            raise IdentityQueryError(
                f"An error occurred getting the identity of Teku node '{service_id}', which is necessary to retrieve its ENR: {exc}",
                service_id=service_id,
            ) from exc

        return ConsensusNodeContext(
            enr=identity.enr,
            ip_address=handle.private_ip_address,
            http_port=self.config.http_port,
        )


__all__ = ["LaunchStage", "TekuLauncher"]
