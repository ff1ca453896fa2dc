"""Resolution of the pdftk executable used by the fallback backend."""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path
from subprocess import CalledProcessError, TimeoutExpired  # noqa: S404
from subprocess import run as subprocess_run  # noqa: S404
from typing import Literal

from formschema.logging import get_logger

logger = get_logger(__name__)

PathSource = Literal["environment", "search_path", "which", "fallback"]

# Common installation paths, in order of preference.
SEARCH_PATHS: tuple[str, ...] = (
    "/usr/bin/pdftk",
    "/usr/local/bin/pdftk",
    "/snap/bin/pdftk",
    "/usr/bin/pdftk-java",
    "/usr/bin/pdftk.pdftk-java",
    "/usr/local/bin/pdftk-java",
)
_FALLBACK = "pdftk"


def _is_executable(path: str | None) -> bool:
    if not path:
        return False
    candidate = Path(path)
    return candidate.is_file() and os.access(candidate, os.X_OK)


class PdftkResolver:
    """Locate pdftk once and remember the answer until `reset()`.

    The resolved path is read-only after the first lookup; recomputing it is
    idempotent, so one instance can be shared by every backend of a process.
    """

    def __init__(
        self,
        configured_path: str | None = None,
        *,
        search_paths: tuple[str, ...] = SEARCH_PATHS,
    ) -> None:
        """Initialize the resolver.

        Args:
            configured_path (str | None): Explicit executable (`PDFTK_PATH`).
            search_paths (tuple[str, ...]): Candidate install locations.
        """
        self._configured_path = configured_path
        self._search_paths = search_paths
        self._resolved: tuple[str, PathSource] | None = None

    def reset(self) -> None:
        """Forget the cached resolution."""
        self._resolved = None

    @property
    def path(self) -> str:
        """Return the pdftk executable, `"pdftk"` when nothing was found."""
        return self._resolve()[0]

    @property
    def source(self) -> PathSource:
        """Return where the executable path came from."""
        return self._resolve()[1]

    @property
    def available(self) -> bool:
        """Return whether a pdftk executable can be invoked."""
        return self.source != "fallback" or shutil.which(_FALLBACK) is not None

    def version(self) -> str | None:
        """Return the pdftk version string, or None if unavailable."""
        if not self.available:
            return None
        try:
            completed = subprocess_run(  # noqa: S603
                [self.path, "--version"],
                capture_output=True,
                text=True,
                check=True,
                timeout=10,
            )
        except (OSError, CalledProcessError, TimeoutExpired) as exc:
            logger.debug("pdftk version check failed", extra={"error": str(exc)})
            return None
        output = completed.stdout.strip()
        match = re.search(r"pdftk\s+([\d.]+)", output, re.IGNORECASE)
        if match:
            return match.group(1)
        return output.splitlines()[0].strip() if output else None

    def info(self) -> dict[str, object]:
        """Return availability details for diagnostics."""
        return {
            "available": self.available,
            "path": self.path,
            "version": self.version(),
            "source": self.source,
        }

    def _resolve(self) -> tuple[str, PathSource]:
        if self._resolved is None:
            self._resolved = self._lookup()
            logger.debug("pdftk resolved", extra={"path": self._resolved[0], "source": self._resolved[1]})
        return self._resolved

    def _lookup(self) -> tuple[str, PathSource]:
        configured = self._configured_path or os.environ.get("PDFTK_PATH")
        if _is_executable(configured):
            return str(configured), "environment"

        for candidate in self._search_paths:
            if _is_executable(candidate):
                return candidate, "search_path"

        for name in ("pdftk", "pdftk-java"):
            which = shutil.which(name)
            if which and _is_executable(which):
                return which, "which"

        return _FALLBACK, "fallback"
