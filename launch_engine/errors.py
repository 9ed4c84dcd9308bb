# launch_engine/errors.py

"""
Error taxonomy for a single node launch. Every error records the stage it
was raised in and the service it concerns; the underlying collaborator error
is kept as ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class LaunchSequenceError(RuntimeError):
    stage: Optional[str] = None

    def __init__(self, message: str, service_id: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.service_id = service_id
        if stage is not None:
            self.stage = stage


class StagingError(LaunchSequenceError):
    """Copying genesis or keystore material into the shared directory failed."""

    stage = "staging"


class ConfigurationError(LaunchSequenceError):
    """An internal invariant was violated, e.g. an expected port is missing."""

    stage = "configuring"


class LaunchError(LaunchSequenceError):
    """The scheduler refused or failed to start the service."""

    stage = "scheduling"


class AvailabilityTimeoutError(LaunchSequenceError):
    stage = "waiting_for_availability"

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[BaseException] = None,
        service_id: Optional[str] = None,
    ):
        super().__init__(message, service_id=service_id)
        self.attempts = attempts
        self.last_error = last_error


class IdentityQueryError(LaunchSequenceError):
    """The node answered health checks but its identity could not be read."""

    stage = "resolving_identity"


__all__ = [
    "LaunchSequenceError",
    "StagingError",
    "ConfigurationError",
    "LaunchError",
    "AvailabilityTimeoutError",
    "IdentityQueryError",
]
