"""Manifest field helpers and pre-packaging validation."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from .constants import MANIFEST_FILE, MANIFEST_NLS_FILE, RESERVED_DEPENDENCY, TRUSTED_SVG_SOURCES
from .file_utils import read_optional_text
from .models import PackagingError

log = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9\-]*$", re.IGNORECASE)
_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)
_ENGINE_RE = re.compile(r"^\*$|^(\^|>=)?((\d+)|x)\.((\d+)|x)\.((\d+)|x)(-.*)?$")
_SHORTHAND_REPO_RE = re.compile(r"^[^/]+/[^/]+$")
_GITHUB_REPO_RE = re.compile(r"^https://github\.com/|^git@github\.com:")
_NLS_KEY_RE = re.compile(r"^%([\w.-]+)%$")


def get_url(value: str | dict | None) -> str | None:
    """Manifest URLs may be a bare string or an object with a `url` key."""
    if not value:
        return None
    if isinstance(value, str):
        return value
    return value.get("url")


def get_repository_url(value: str | dict | None) -> str | None:
    url = get_url(value)
    if url and _SHORTHAND_REPO_RE.match(url):
        return f"https://github.com/{url}.git"
    return url


def is_github_repository(repository: str | None) -> bool:
    return bool(_GITHUB_REPO_RE.search(repository or ""))


def is_host_trusted(host: str | None) -> bool:
    return (host or "").lower() in TRUSTED_SVG_SOURCES


def _version_tuple(version: str) -> tuple[int, int, int] | None:
    match = re.match(r"^(?:\^|>=)?(\d+)\.(\d+)\.(\d+)", version.strip())
    if not match:
        return None
    return tuple(int(part) for part in match.groups())


def validate_publisher(publisher: str | None) -> None:
    if not publisher:
        raise PackagingError("Missing publisher name. Learn more: https://code.visualstudio.com/api/working-with-extensions/publishing-extension#publishing-extensions")
    if not _NAME_RE.match(publisher):
        raise PackagingError(f"Invalid publisher name '{publisher}'. Expected the identifier of a publisher, not its human-friendly name.")


def validate_extension_name(name: str | None) -> None:
    if not name:
        raise PackagingError("Missing extension name")
    if not _NAME_RE.match(name):
        raise PackagingError(f"Invalid extension name '{name}'")


def validate_version(version: str | None) -> None:
    if not version:
        raise PackagingError("Manifest missing field: version")
    if not _SEMVER_RE.match(version):
        raise PackagingError(f"Invalid extension version '{version}'")


def validate_engine_compatibility(engine: str) -> None:
    if not _ENGINE_RE.match(engine):
        raise PackagingError(f"Invalid vscode engine compatibility version '{engine}'")


def validate_types_compatibility(engine: str, types_version: str) -> None:
    """`@types/vscode` must not be newer than the engine it targets."""
    if engine == "*":
        return
    engine_version = _version_tuple(engine)
    declared = _version_tuple(types_version)
    if engine_version is None or declared is None:
        return
    if declared > engine_version:
        raise PackagingError(
            f"@types/vscode {types_version} greater than engines.vscode {engine}. "
            "Either upgrade engines.vscode or use an older @types/vscode version"
        )


def validate_badge_url(url: str) -> None:
    parts = urlsplit(unquote(url))
    if parts.scheme.lower() != "https":
        raise PackagingError(f"Badge URLs must come from an HTTPS source: {url}")
    if parts.path.lower().endswith(".svg") and not is_host_trusted(parts.hostname):
        raise PackagingError(f"Badge SVGs are restricted. Please use other file image formats, such as PNG: {url}")


def validate_manifest(manifest: dict[str, Any]) -> dict[str, Any]:
    validate_publisher(manifest.get("publisher"))
    validate_extension_name(manifest.get("name"))
    validate_version(manifest.get("version"))

    engines = manifest.get("engines")
    if not engines:
        raise PackagingError("Manifest missing field: engines")
    engine = engines.get("vscode")
    if not engine:
        raise PackagingError("Manifest missing field: engines.vscode")
    validate_engine_compatibility(engine)

    types_version = (manifest.get("devDependencies") or {}).get("@types/vscode")
    if types_version:
        validate_types_compatibility(engine, types_version)

    icon = manifest.get("icon") or ""
    if icon.lower().endswith(".svg"):
        raise PackagingError(f"SVGs can't be used as icons: {icon}")

    for badge in manifest.get("badges") or []:
        validate_badge_url(badge.get("url", ""))

    if RESERVED_DEPENDENCY in (manifest.get("dependencies") or {}):
        raise PackagingError(
            "You should not depend on 'vscode' in your 'dependencies'. "
            "Did you mean to add it to 'devDependencies'?"
        )
    return manifest


def patch_nls(value: Any, translations: dict[str, str]) -> Any:
    """Replace every string that is exactly `%key%` with its translation, when one exists."""
    if isinstance(value, dict):
        return {key: patch_nls(item, translations) for key, item in value.items()}
    if isinstance(value, list):
        return [patch_nls(item, translations) for item in value]
    if isinstance(value, str):
        match = _NLS_KEY_RE.match(value)
        if match:
            return translations.get(match.group(1)) or value
    return value


def read_translations(cwd: Path) -> dict[str, str]:
    nls_path = Path(cwd) / MANIFEST_NLS_FILE
    raw = read_optional_text(nls_path)
    if raw is None:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PackagingError(f"Error parsing JSON manifest translations file: {nls_path}") from e


def read_manifest(cwd: Path, nls: bool = True) -> dict[str, Any]:
    manifest_path = Path(cwd) / MANIFEST_FILE
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise PackagingError(f"Extension manifest not found: {manifest_path}") from e
    try:
        manifest = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PackagingError(f"Error parsing '{MANIFEST_FILE}' manifest file: not a valid JSON file.") from e
    log.debug("loaded manifest %s", manifest_path)
    manifest = validate_manifest(manifest)

    if not nls:
        return manifest
    return patch_nls(manifest, read_translations(cwd))
