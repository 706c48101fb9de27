from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class PackagingError(Exception):
    """Fatal condition that aborts packaging; no artifact is produced."""


@dataclass(frozen=True)
class Asset:
    type: str
    path: str


@dataclass(frozen=True)
class PackageFile:
    """A file addressed by its virtual path inside the package.

    Content comes either from `contents` (inline bytes) or from `local_path`
    on disk; inline contents win when both are set.
    """

    path: str
    contents: bytes | None = field(default=None, repr=False)
    local_path: Path | None = None

    def read_bytes(self) -> bytes:
        if self.contents is not None:
            return self.contents
        if self.local_path is None:
            return b""
        return self.local_path.read_bytes()

    def read_text(self) -> str:
        """Decode as UTF-8; invalid bytes become U+FFFD instead of failing the run."""
        return self.read_bytes().decode("utf-8", errors="replace")


@dataclass(frozen=True)
class IgnoreRules:
    exclude: tuple[str, ...] = ()
    reinclude: tuple[str, ...] = ()


@dataclass
class PackageOptions:
    """Knobs for a packaging run."""

    cwd: Path = field(default_factory=Path.cwd)
    package_path: Path | None = None
    base_content_url: str | None = None
    base_images_url: str | None = None
    use_yarn: bool = False
    dependency_entry_points: list[str] | None = None
    workers: int | None = None


@dataclass
class PipelineState:
    files: list[PackageFile] = field(default_factory=list)
    assets: list[Asset] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PackageResult:
    manifest: dict[str, Any]
    package_path: Path
    files: list[PackageFile] = field(default_factory=list)
