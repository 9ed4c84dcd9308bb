# launch_engine/shared_path.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class SharedPath:
    """
    A location inside a directory mounted into both the launcher and a service.

    ``path_on_launcher`` is where this process reads/writes it; ``path_on_service``
    is the same location as seen from inside the service's container.
    """

    path_on_launcher: Path
    path_on_service: PurePosixPath

    def child(self, relative_path: str) -> "SharedPath":
        relative = PurePosixPath(relative_path)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"Shared child path must stay inside the shared dir: '{relative_path}'")
        return SharedPath(
            path_on_launcher=Path(self.path_on_launcher).joinpath(*relative.parts),
            path_on_service=PurePosixPath(self.path_on_service) / relative,
        )


__all__ = ["SharedPath"]
