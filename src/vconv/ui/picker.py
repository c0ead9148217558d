"""Directory listing for the file picker screen."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Extensions that can be selected for conversion (matched case-insensitively)
ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {".mp4", ".mov", ".mxf", ".wav", ".mkv", ".flac"}
)


@dataclass(frozen=True)
class DirEntry:
    """One row of the picker listing."""

    path: Path
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def allowed(self) -> bool:
        """Directories can be entered; files need an allowed extension."""
        return self.is_dir or is_allowed_file(self.path)

    @property
    def label(self) -> str:
        return f"{self.name}/" if self.is_dir else self.name


DirectoryLister = Callable[[Path], tuple[DirEntry, ...]]


def is_allowed_file(path: Path) -> bool:
    """Return True if the file extension is one the converter accepts."""
    return path.suffix.lower() in ALLOWED_EXTENSIONS


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def list_directory(directory: Path) -> tuple[DirEntry, ...]:
    """List a directory for the picker.

    Hidden entries are skipped. Directories come first, then files, each
    group sorted case-insensitively by name. Files with other extensions are
    listed too; selecting them is rejected by the picker.

    Raises:
        OSError: If the directory cannot be read.
    """
    entries: list[DirEntry] = []
    with os.scandir(directory) as it:
        for item in it:
            if is_hidden(item.name):
                continue
            try:
                is_dir = item.is_dir()
            except OSError:
                # Broken symlink or vanished entry
                logger.debug("Skipping unreadable entry %s", item.path)
                continue
            entries.append(DirEntry(path=Path(item.path), is_dir=is_dir))

    entries.sort(key=lambda e: (not e.is_dir, e.name.lower()))
    return tuple(entries)


def resolve_start_directory(configured: Path | None = None) -> Path:
    """Pick the directory the picker opens in.

    The configured start directory wins; otherwise the user's home
    directory, falling back to the current directory.
    """
    if configured is not None and configured.is_dir():
        return configured
    try:
        home = Path.home()
    except RuntimeError:
        return Path.cwd()
    return home if home.is_dir() else Path.cwd()
