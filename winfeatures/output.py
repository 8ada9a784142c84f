"""JSON serialisation of a resolution run."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from winfeatures import __version__
from winfeatures.config import ResolutionResult, ToolConfig


def build_result(config: ToolConfig, result: ResolutionResult) -> dict:
    """Build the output document for a resolution run."""
    return {
        "version": "1.0",
        "metadata": {
            "scan_dir": str(Path(config.scan_dir).resolve()),
            "windows_version": config.windows_version,
            "catalog_path": config.catalog_path,
            "analysed_at": datetime.now(timezone.utc).isoformat(),
            "tool_version": __version__,
            "analysis_duration_ms": result.duration_ms,
            "phase_timings": result.timings,
        },
        "stats": result.stats(),
        "features": list(result.features),
        "imports": [r.to_dict() for r in result.resolutions],
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }


def write_output(data: dict, output_path: str) -> None:
    """Write the output document to a JSON file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
