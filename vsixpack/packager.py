from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any

from .archive import assemble, write_vsix
from .constants import PACKAGE_ROOT, PREPUBLISH_MAX_OUTPUT, PREPUBLISH_SCRIPT
from .ignore import DependencyResolver, collect_files
from .manifest import read_manifest
from .models import PackageFile, PackageOptions, PackageResult, PackagingError
from .pipeline import process_files
from .processors import Confirm, create_default_processors, stdin_confirm

log = logging.getLogger(__name__)

LARGE_PACKAGE_FILES = 100


def default_package_path(cwd: Path, manifest: dict[str, Any]) -> Path:
    return Path(cwd) / f"{manifest['name']}-{manifest['version']}.vsix"


def prepublish(cwd: Path, manifest: dict[str, Any], use_yarn: bool = False) -> dict[str, Any]:
    """Run the manifest's prepublish script, if any, before files are collected."""
    scripts = manifest.get("scripts") or {}
    if not scripts.get(PREPUBLISH_SCRIPT):
        return manifest

    cmd = ["yarn" if use_yarn else "npm", "run", PREPUBLISH_SCRIPT]
    log.warning("Executing prepublish script '%s'...", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise PackagingError(f"Command failed: {' '.join(cmd)}\n{e}") from e

    if len(proc.stdout) > PREPUBLISH_MAX_OUTPUT or len(proc.stderr) > PREPUBLISH_MAX_OUTPUT:
        raise PackagingError(f"Command failed: {' '.join(cmd)}\nstdout maxBuffer exceeded")
    if proc.returncode != 0:
        raise PackagingError(f"Command failed: {' '.join(cmd)}\n{proc.stderr}".rstrip())

    if proc.stdout:
        log.info("%s", proc.stdout.rstrip())
    if proc.stderr:
        log.warning("%s", proc.stderr.rstrip())
    return manifest


def collect(
    manifest: dict[str, Any],
    options: PackageOptions | None = None,
    confirm: Confirm | None = None,
    dependency_resolver: DependencyResolver | None = None,
) -> list[PackageFile]:
    """Resolve the included files and run them through the default processors."""
    options = options or PackageOptions()
    cwd = Path(options.cwd)
    processors = create_default_processors(manifest, options, confirm=confirm)

    names = collect_files(
        cwd,
        use_yarn=options.use_yarn,
        dependency_entry_points=options.dependency_entry_points,
        dependency_resolver=dependency_resolver,
    )
    files = [PackageFile(path=f"{PACKAGE_ROOT}/{name}", local_path=cwd / name) for name in names]
    state = process_files(processors, files, workers=options.workers)
    return assemble(state)


def pack(
    options: PackageOptions | None = None,
    confirm: Confirm | None = stdin_confirm,
    dependency_resolver: DependencyResolver | None = None,
) -> PackageResult:
    options = options or PackageOptions()
    cwd = Path(options.cwd)

    manifest = read_manifest(cwd)
    manifest = prepublish(cwd, manifest, use_yarn=options.use_yarn)

    files = collect(manifest, options, confirm=confirm, dependency_resolver=dependency_resolver)
    if len(files) > LARGE_PACKAGE_FILES:
        log.warning(
            "This extension consists of %d separate files. For performance reasons, you should bundle "
            "your extension: https://aka.ms/vscode-bundle-extension. You should also exclude unnecessary "
            "files by adding them to your .vscodeignore: https://aka.ms/vscode-vscodeignore",
            len(files),
        )

    package_path = Path(options.package_path or default_package_path(cwd, manifest)).resolve()
    write_vsix(files, package_path)
    return PackageResult(manifest=manifest, package_path=package_path, files=files)


def format_size(size: int) -> str:
    if size > 1024 * 1024:
        return f"{round(size / (1024 * 1024), 2)}MB"
    return f"{round(size / 1024, 2)}KB"


def package_command(
    options: PackageOptions | None = None,
    confirm: Confirm | None = stdin_confirm,
    dependency_resolver: DependencyResolver | None = None,
) -> PackageResult:
    result = pack(options, confirm=confirm, dependency_resolver=dependency_resolver)
    size = result.package_path.stat().st_size
    log.info("Packaged: %s (%d files, %s)", result.package_path, len(result.files), format_size(size))
    return result


def list_files(
    cwd: Path,
    use_yarn: bool = False,
    dependency_entry_points: list[str] | None = None,
    dependency_resolver: DependencyResolver | None = None,
) -> list[str]:
    """Relative paths that would be packaged. Does not run prepublish."""
    read_manifest(cwd)
    return collect_files(cwd, use_yarn, dependency_entry_points, dependency_resolver)


def ls(
    cwd: Path,
    use_yarn: bool = False,
    dependency_entry_points: list[str] | None = None,
    dependency_resolver: DependencyResolver | None = None,
) -> list[str]:
    """Like `list_files`, but runs prepublish first and logs each path."""
    manifest = read_manifest(cwd)
    prepublish(cwd, manifest, use_yarn=use_yarn)
    files = collect_files(cwd, use_yarn, dependency_entry_points, dependency_resolver)
    for name in files:
        log.info("%s", name)
    return files
