"""Artifact file models.

ArtifactFile is the unit every component exchanges. Paths are always
stored in normalized form (see normalize_path).
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field

_DUPLICATE_SLASHES = re.compile(r"/{2,}")

# Extension -> language name. Anything unknown is "text".
EXTENSION_LANGUAGES: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".json": "json",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".md": "markdown",
    ".py": "python",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".sql": "sql",
    ".sh": "shell",
    ".prisma": "prisma",
    ".cds": "cds",
    ".xml": "xml",
}


def normalize_path(path: str) -> str:
    """Normalize a relative artifact path.

    Converts backslashes to forward slashes, collapses duplicate slashes,
    strips leading ``/`` and ``./`` and surrounding whitespace.

    >>> normalize_path("/app//page.tsx")
    'app/page.tsx'
    """
    cleaned = path.strip().replace("\\", "/")
    cleaned = _DUPLICATE_SLASHES.sub("/", cleaned)
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return cleaned.lstrip("/")


def language_for_path(path: str, default: str = "text") -> str:
    """Infer the language name from a path's extension."""
    _, ext = posixpath.splitext(path.lower())
    return EXTENSION_LANGUAGES.get(ext, default)


@dataclass(frozen=True)
class ArtifactFile:
    """A single file of a generated artifact.

    The path is normalized on construction, so two files that differ only
    in slash style compare equal by path.
    """

    path: str
    content: str
    language: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        if not self.language:
            object.__setattr__(self, "language", language_for_path(self.path))

    @property
    def name(self) -> str:
        """Basename of the file path."""
        return posixpath.basename(self.path)

    @property
    def stem(self) -> str:
        """Basename without its final extension."""
        return posixpath.splitext(self.name)[0]


@dataclass(frozen=True)
class SelectedFile:
    """A file chosen for the completion context.

    ``content`` is the text actually injected, which differs from
    ``file.content`` only when ``truncated`` is set.
    """

    file: ArtifactFile
    content: str
    truncated: bool = False


@dataclass(frozen=True)
class ContextSelection:
    """Result of a context selection pass. Recomputed on every call."""

    included_files: list[SelectedFile] = field(default_factory=list)
    total_chars: int = 0
    dropped_paths: list[str] = field(default_factory=list)

    @property
    def included_paths(self) -> list[str]:
        return [s.file.path for s in self.included_files]

    @property
    def truncated_paths(self) -> list[str]:
        return [s.file.path for s in self.included_files if s.truncated]
