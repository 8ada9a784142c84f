"""Sequential phase orchestrator with timing."""

from __future__ import annotations

import logging
import time

from winfeatures.catalog import load_catalog
from winfeatures.config import ResolutionResult, ToolConfig
from winfeatures.phases.resolve import resolve_all
from winfeatures.phases.scan import scan_imports, unique_targets

logger = logging.getLogger(__name__)

_PHASE_LABELS = {
    "catalog": "Loading features.json",
    "scan": "Scanning for imports",
    "resolve": "Resolving features",
}


def run_pipeline(
    config: ToolConfig,
    progress_callback=None,
) -> ResolutionResult:
    """Load the catalog, scan the source tree and resolve required features.

    Args:
        config: Tool configuration.
        progress_callback: Optional callable(phase_name, label) invoked
            when each phase starts. Used by the CLI for Rich progress.

    Raises:
        CatalogError: the catalog could not be loaded.
    """
    timings: dict[str, float] = {}
    total_start = time.monotonic()

    def _start(name: str) -> float:
        if progress_callback:
            progress_callback(name, _PHASE_LABELS.get(name, name))
        return time.monotonic()

    start = _start("catalog")
    catalog = load_catalog(config)
    timings["catalog"] = time.monotonic() - start

    start = _start("scan")
    raw_imports = unique_targets(scan_imports(config))
    timings["scan"] = time.monotonic() - start
    if not raw_imports:
        logger.warning(f"No 'use {config.crate_name}::' imports found.")

    start = _start("resolve")
    result = resolve_all(raw_imports, catalog)
    timings["resolve"] = time.monotonic() - start

    result.timings = timings
    result.duration_ms = round((time.monotonic() - total_start) * 1000, 1)
    return result
