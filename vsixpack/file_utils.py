from __future__ import annotations

import re
from pathlib import Path, PurePosixPath


def normalize_posix_path(rel_path: str | Path) -> str:
    """
    Normalize a relative path to a posix-style string (forward slashes).

    This is used for ignore matching and as the key for package entries.
    """
    if isinstance(rel_path, Path):
        rel_path = str(rel_path)
    # PurePosixPath does not treat backslashes as separators, so normalize first.
    rel_path = rel_path.replace("\\", "/")
    return str(PurePosixPath(rel_path))


def _split_top_level(body: str) -> list[str]:
    options: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            options.append("".join(current))
            current = []
            continue
        current.append(ch)
    options.append("".join(current))
    return options


def expand_braces(pattern: str) -> list[str]:
    """Expand `{a,b}` alternatives the way shells do: `x.{js,ts}` -> two patterns."""
    start = pattern.find("{")
    while start != -1:
        depth = 0
        end = -1
        for pos in range(start, len(pattern)):
            if pattern[pos] == "{":
                depth += 1
            elif pattern[pos] == "}":
                depth -= 1
                if depth == 0:
                    end = pos
                    break
        if end == -1:
            return [pattern]
        options = _split_top_level(pattern[start + 1:end])
        if len(options) > 1:
            head, tail = pattern[:start], pattern[end + 1:]
            expanded: list[str] = []
            for option in options:
                expanded.extend(expand_braces(head + option + tail))
            return expanded
        start = pattern.find("{", start + 1)
    return [pattern]


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    i, n = 0, len(segment)
    while i < n:
        ch = segment[i]
        i += 1
        if ch == "*":
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            j = i
            if j < n and segment[j] in "!^":
                j += 1
            if j < n and segment[j] == "]":
                j += 1
            while j < n and segment[j] != "]":
                j += 1
            if j >= n:
                out.append(re.escape(ch))
                continue
            stuff = segment[i:j].replace("\\", "\\\\")
            i = j + 1
            if stuff[0] in "!^":
                stuff = "^" + stuff[1:]
            out.append(f"[{stuff}]")
        elif ch == "\\" and i < n:
            out.append(re.escape(segment[i]))
            i += 1
        else:
            out.append(re.escape(ch))
    return "".join(out)


def translate_glob(pattern: str) -> str:
    """
    Translate one brace-free glob into a regex body.

    Unlike fnmatch, `*` and `?` stop at `/`, and a `**` segment spans zero or
    more whole directories. Dot files get no special treatment.
    """
    segments = pattern.split("/")
    last = len(segments) - 1
    parts: list[str] = []
    for idx, segment in enumerate(segments):
        if segment == "**":
            parts.append(".*" if idx == last else "(?:[^/]*/)*")
        else:
            parts.append(_translate_segment(segment) + ("" if idx == last else "/"))
    return "".join(parts)


def compile_ignore_matcher(patterns: list[str] | tuple[str, ...]):
    """
    Compile glob patterns into a single case-sensitive full-path matcher.

    Returns a callable: matcher(path_posix: str) -> bool
    """
    pieces = [
        f"(?:{translate_glob(expanded)})"
        for pattern in patterns if pattern
        for expanded in expand_braces(pattern)
    ]
    if not pieces:
        return lambda _path: False
    regex = re.compile(r"(?s:%s)\Z" % "|".join(pieces))
    return lambda path_posix: regex.match(path_posix) is not None


def read_optional_text(path: Path) -> str | None:
    """Read a UTF-8 file, returning None when it does not exist.

    Every other read failure propagates.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def url_join(*parts: str) -> str:
    """Join URL pieces with exactly one slash between them."""
    pieces = [p for p in parts if p]
    if not pieces:
        return ""
    head = pieces[0].rstrip("/")
    tail = [p.strip("/") for p in pieces[1:]]
    return "/".join([head, *(p for p in tail if p)])
