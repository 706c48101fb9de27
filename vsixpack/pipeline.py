"""
Processor pipeline.

A processor is any object exposing some of these capabilities:

  on_start(files)          sees the full included list before transforms run
  on_file(file, assets)    returns the (possibly rewritten) file and appends
                           the assets it found in that file to `assets`
  metadata                 mapping known up front
  on_end(assets)           runs once all files are transformed, receiving the
                           processor's own assets; may return more metadata
                           or raise to abort the run

Whatever a processor leaves out is skipped.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Sequence
from typing import Any

from .models import Asset, PackageFile, PipelineState

log = logging.getLogger(__name__)

DEFAULT_WORKERS = 8


def _run_chain(processors: Sequence[object], file: PackageFile) -> tuple[PackageFile, list[list[Asset]]]:
    found: list[list[Asset]] = []
    for processor in processors:
        assets: list[Asset] = []
        on_file = getattr(processor, "on_file", None)
        if on_file is not None:
            file = on_file(file, assets)
        found.append(assets)
    return file, found


def process_files(
    processors: Sequence[object],
    files: list[PackageFile],
    workers: int | None = None,
) -> PipelineState:
    """Thread every file through every processor, then finalize in order."""
    for processor in processors:
        on_start = getattr(processor, "on_start", None)
        if on_start is not None:
            on_start(files)

    max_workers = max(1, min(workers or DEFAULT_WORKERS, len(files) or 1))
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda f: _run_chain(processors, f), files))

    processed = [file for file, _ in results]
    per_stage: list[list[Asset]] = [[] for _ in processors]
    for _, found in results:
        for idx, assets in enumerate(found):
            per_stage[idx].extend(assets)

    # Later stages may rely on what earlier ones settled, so finalize one by one.
    fragments: list[dict[str, Any]] = []
    for processor, assets in zip(processors, per_stage):
        fragment = dict(getattr(processor, "metadata", None) or {})
        on_end = getattr(processor, "on_end", None)
        if on_end is not None:
            fragment.update(on_end(assets) or {})
        fragments.append(fragment)

    all_assets = [asset for assets in per_stage for asset in assets]
    metadata: dict[str, Any] = {"assets": all_assets}
    for fragment in fragments:
        metadata.update(fragment)

    log.debug("pipeline processed %d files into %d assets", len(processed), len(all_assets))
    return PipelineState(files=processed, assets=all_assets, metadata=metadata)
