from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterable
from pathlib import Path

from .constants import DEFAULT_IGNORE_PATTERNS, IGNORE_FILE, MANIFEST_FILE
from .file_utils import compile_ignore_matcher, normalize_posix_path, read_optional_text
from .models import IgnoreRules

log = logging.getLogger(__name__)

NESTED_DEPENDENCY_DIR = "node_modules"

DependencyResolver = Callable[..., list[Path]]

# Last path segment carries a `*`: the pattern is already a glob.
_GLOB_TAIL_RE = re.compile(r"(^|/)[^/]*\*[^/]*$")
_NEGATION_RE = re.compile(r"^\s*!")


def local_dependencies(cwd: Path, use_yarn: bool = False,
                       entry_points: list[str] | None = None) -> list[Path]:
    """Resolver that packages the project directory alone."""
    _ = (use_yarn, entry_points)
    return [cwd]


def _iter_dependency_files(dep_dir: Path):
    for dirpath, dirnames, filenames in os.walk(dep_dir):
        if Path(dirpath) == dep_dir:
            dirnames[:] = [d for d in dirnames if d != NESTED_DEPENDENCY_DIR]
        dirnames.sort()
        for filename in sorted(filenames):
            yield Path(dirpath) / filename


def collect_all_files(cwd: Path, dependency_dirs: Iterable[Path]) -> list[str]:
    """Union the recursive listing of every dependency dir, as cwd-relative posix paths."""
    cwd = Path(cwd)
    seen: set[str] = set()
    files: list[str] = []
    for dep_dir in dependency_dirs:
        dep_dir = Path(dep_dir)
        for filepath in _iter_dependency_files(dep_dir):
            rel_posix = normalize_posix_path(os.path.relpath(filepath, cwd))
            if "\r" in rel_posix or rel_posix in seen:
                continue
            seen.add(rel_posix)
            files.append(rel_posix)
    log.debug("collected %d candidate files from %s", len(files), cwd)
    return files


def parse_ignore_file(raw: str) -> list[str]:
    lines = (line.strip() for line in re.split(r"[\n\r]", raw))
    return [line for line in lines if line and not line.startswith("#")]


def expand_patterns(patterns: list[str]) -> list[str]:
    """Treat non-glob patterns as folder names too: `foo` also yields `foo/**`."""
    folders = []
    for pattern in patterns:
        if _GLOB_TAIL_RE.search(pattern):
            continue
        folders.append(f"{pattern}**" if pattern.endswith("/") else f"{pattern}/**")
    return [*patterns, *folders]


def build_rules(project_patterns: list[str]) -> IgnoreRules:
    combined = [*DEFAULT_IGNORE_PATTERNS, *expand_patterns(project_patterns), f"!{MANIFEST_FILE}"]
    exclude = tuple(p for p in combined if not _NEGATION_RE.match(p))
    reinclude = tuple(p.lstrip()[1:] for p in combined if _NEGATION_RE.match(p))
    return IgnoreRules(exclude=exclude, reinclude=reinclude)


def compile_rules(rules: IgnoreRules) -> Callable[[str], bool]:
    is_excluded = compile_ignore_matcher(rules.exclude)
    is_reincluded = compile_ignore_matcher(rules.reinclude)
    return lambda path_posix: not is_excluded(path_posix) or is_reincluded(path_posix)


def is_included(path_posix: str, rules: IgnoreRules) -> bool:
    return compile_rules(rules)(path_posix)


def resolve_included(candidates: list[str], rules: IgnoreRules) -> list[str]:
    include = compile_rules(rules)
    return [path for path in candidates if include(path)]


def read_project_patterns(cwd: Path) -> list[str]:
    raw = read_optional_text(Path(cwd) / IGNORE_FILE)
    if raw is None:
        log.debug("no %s in %s", IGNORE_FILE, cwd)
        return []
    return parse_ignore_file(raw)


def collect_files(
    cwd: Path,
    use_yarn: bool = False,
    dependency_entry_points: list[str] | None = None,
    dependency_resolver: DependencyResolver | None = None,
) -> list[str]:
    """Return the cwd-relative paths that end up in the package."""
    resolver = dependency_resolver or local_dependencies
    dependency_dirs = resolver(Path(cwd), use_yarn, dependency_entry_points)
    candidates = collect_all_files(cwd, dependency_dirs)
    rules = build_rules(read_project_patterns(cwd))
    included = resolve_included(candidates, rules)
    log.debug("ignore rules kept %d of %d files", len(included), len(candidates))
    return included
