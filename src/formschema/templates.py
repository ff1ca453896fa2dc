"""Blank PDF template lookup."""

from __future__ import annotations

from pathlib import Path


class LocalTemplateSource:
    """Templates stored in a local directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the source.

        Args:
            root (Path): Directory holding the templates.
        """
        self.root = Path(root)

    def resolve(self, filename: str) -> Path | None:
        """Return the template path for `filename`, or None if absent.

        The lookup is case-insensitive on the file name.
        """
        candidate = self.root / filename
        if candidate.is_file():
            return candidate
        if not self.root.is_dir():
            return None
        wanted = Path(filename).name.lower()
        for path in self.root.iterdir():
            if path.is_file() and path.name.lower() == wanted:
                return path
        return None

    def exists(self, filename: str) -> bool:
        """Return whether `filename` is available."""
        return self.resolve(filename) is not None

    def list(self, pattern: str = "*.pdf") -> list[Path]:
        """Return templates matching `pattern`, sorted by name."""
        if not self.root.is_dir():
            return []
        return sorted(path for path in self.root.glob(pattern) if path.is_file())
