from __future__ import annotations

import logging
import mimetypes
import zipfile
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import Environment, FileSystemLoader

from .constants import CONTENT_TYPES_FILE, DEFAULT_CONTENT_TYPES, VSIX_MANIFEST_FILE
from .models import PackageFile, PipelineState

log = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _xml_bool(value: Any) -> str:
    return "true" if value else "false"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["xml_bool"] = _xml_bool
    return env


def to_vsix_manifest(metadata: dict[str, Any]) -> str:
    template = _environment().get_template(VSIX_MANIFEST_FILE)
    context = {
        "tags": "",
        "license": None,
        "icon": None,
        "links": {},
        "galleryBanner": {},
        "badges": [],
        "assets": [],
        "enableMarketplaceQnA": None,
    }
    context.update(metadata)
    return template.render(**context)


def lookup_content_type(extension: str) -> str:
    content_type, _ = mimetypes.guess_type(f"file{extension}", strict=False)
    return content_type or "application/octet-stream"


def to_content_types(files: list[PackageFile]) -> str:
    extensions: dict[str, str] = {}
    for file in files:
        extension = PurePosixPath(file.path).suffix.lower()
        if extension and extension not in extensions:
            extensions[extension] = lookup_content_type(extension)
    extensions.update(DEFAULT_CONTENT_TYPES)

    content_types = [
        {"extension": extension, "content_type": content_type}
        for extension, content_type in extensions.items()
    ]
    template = _environment().get_template(CONTENT_TYPES_FILE)
    return template.render(content_types=content_types)


def assemble(state: PipelineState) -> list[PackageFile]:
    """Prefix the generated manifest and content-type index to the included files."""
    return [
        PackageFile(path=VSIX_MANIFEST_FILE, contents=to_vsix_manifest(state.metadata).encode("utf-8")),
        PackageFile(path=CONTENT_TYPES_FILE, contents=to_content_types(state.files).encode("utf-8")),
        *state.files,
    ]


def write_vsix(files: list[PackageFile], package_path: Path) -> Path:
    """
    Write the archive, replacing whatever is at `package_path`.

    The old archive is removed before the new one is written; a failure
    midway leaves a partial archive (or none) in its place.
    """
    package_path = Path(package_path)
    package_path.unlink(missing_ok=True)
    package_path.parent.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(package_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for file in files:
            if file.contents is not None:
                zf.writestr(file.path, file.contents)
            else:
                zf.write(file.local_path, arcname=file.path)
    log.debug("wrote %d entries to %s", len(files), package_path)
    return package_path
