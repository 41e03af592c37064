"""Version descriptor for the running build.

The commit and build date are stamped into the container image as
environment variables at build time; local builds report ``unknown``.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass

from kubestate import __version__


@dataclass(frozen=True)
class VersionInfo:
    """Identifies the running exporter build."""

    version: str
    git_commit: str
    build_date: str
    python_version: str
    platform: str

    def __str__(self) -> str:
        return (
            f"kubestate/v{self.version} ({self.platform}) "
            f"git-commit/{self.git_commit} python/{self.python_version}"
        )


def get_version() -> VersionInfo:
    """Return the descriptor of the running build."""
    return VersionInfo(
        version=__version__,
        git_commit=os.environ.get("KUBESTATE_BUILD_COMMIT", "unknown"),
        build_date=os.environ.get("KUBESTATE_BUILD_DATE", "unknown"),
        python_version=platform.python_version(),
        platform=f"{platform.system().lower()}/{platform.machine().lower()}",
    )
