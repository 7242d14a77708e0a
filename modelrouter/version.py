"""Build version information."""

from __future__ import annotations

import platform

VERSION = "devel"
COMMIT_SHA = "unknown"
BUILD_DATE = "unknown"


def full_version(
    version: str = VERSION,
    commit_sha: str = COMMIT_SHA,
    build_date: str = BUILD_DATE,
) -> str:
    """Human-readable version line including commit, runtime and build date."""
    runtime = f"python{platform.python_version()}"
    return f"{version} (commit: {commit_sha}, runtime: {runtime}, buildDate: {build_date})"


FULL_VERSION = full_version()