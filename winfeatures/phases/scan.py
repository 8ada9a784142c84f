"""Source scan: locate ``use windows::`` imports in a Rust source tree."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path

from winfeatures.config import ImportStatement, ToolConfig
from winfeatures.languages import get_analyser, supported_extensions

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = {
    ".git", "target", "node_modules", ".vs", ".idea", "__pycache__",
    ".venv", "venv", "dist", "build",
}

_SEARCH_LINE = re.compile(
    r"^(?P<file>.+?):(?P<statement>\s*(?:pub(?:\s*\([^)]*\))?\s+)?use\s.*)$"
)


def _should_ignore(name: str, ignore_set: set[str]) -> bool:
    """Check if a directory name matches ignore patterns."""
    return name in ignore_set or name.startswith(".")


def split_search_line(line: str) -> tuple[str | None, str]:
    """Split ``<file>:<statement>`` text-search output.

    Lines without a file prefix come back as ``(None, line)``.
    """
    match = _SEARCH_LINE.match(line.strip())
    if match is None:
        return None, line.strip()
    return match.group("file"), match.group("statement").strip()


def scan_imports(config: ToolConfig) -> list[ImportStatement]:
    """Walk ``config.scan_dir`` and extract crate imports from every .rs file."""
    root = Path(config.scan_dir)
    if not root.is_dir():
        logger.warning(f"Scan directory does not exist: {root}")
        return []

    ignore_set = set(DEFAULT_IGNORE)
    ignore_set.update(config.exclude_patterns)
    extensions = supported_extensions()
    analyser = get_analyser()

    imports: list[ImportStatement] = []
    scanned = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [
            d for d in sorted(dirnames)
            if not _should_ignore(d, ignore_set)
        ]

        for filename in sorted(filenames):
            if os.path.splitext(filename)[1].lower() not in extensions:
                continue

            full_path = os.path.join(dirpath, filename)
            rel_path = os.path.relpath(full_path, root).replace("\\", "/")

            try:
                if os.path.getsize(full_path) > config.max_file_size:
                    logger.debug(f"Skipping {rel_path}: larger than {config.max_file_size} bytes")
                    continue
                with open(full_path, "rb") as f:
                    source = f.read()
            except OSError as e:
                logger.warning(f"Failed to read {rel_path}: {e}")
                continue

            try:
                tree = analyser.parse(source)
                found = analyser.extract_imports(tree, source, rel_path, config.crate_name)
            except Exception as e:
                logger.warning(f"Failed to extract imports from {rel_path}: {e}")
                continue

            scanned += 1
            imports.extend(found)

    logger.info(f"Found {len(imports)} '{config.crate_name}' imports in {scanned} files")
    return imports


def unique_targets(statements: Iterable[ImportStatement]) -> list[str]:
    """Distinct import paths in first-seen order."""
    seen: dict[str, None] = {}
    for statement in statements:
        seen.setdefault(statement.target_name, None)
    return list(seen)
