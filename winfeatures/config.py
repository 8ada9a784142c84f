"""Core data types and configuration for windows-features."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

NAMESPACE_ROOT = "Windows"
CRATE_NAME = "windows"
WILDCARD = "*"
DEFAULT_WINDOWS_VERSION = "0.58.0"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"

    @property
    def log_level(self) -> int:
        return logging.INFO if self is Severity.INFO else logging.WARNING


class ResolutionStatus(str, Enum):
    EXACT = "exact"
    CORRECTED = "corrected"
    WILDCARD = "wildcard"
    UNRESOLVED = "unresolved"
    UNPARSEABLE = "unparseable"


@dataclass
class NamespaceEntry:
    name: str
    features: list[int] | None = None


@dataclass
class Catalog:
    """Deserialized features.json.

    Namespace keys keep their raw string form; CatalogIndex parses them.
    """
    namespace_map: list[str] = field(default_factory=list)
    feature_map: list[str] = field(default_factory=list)
    namespaces: dict[str, list[NamespaceEntry]] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportReference:
    """A parsed import: namespace segments below the root plus an item.

    ``item`` is None for a wildcard import.
    """
    segments: tuple[str, ...]
    item: str | None = None
    root: str = NAMESPACE_ROOT

    @property
    def is_wildcard(self) -> bool:
        return self.item is None

    @property
    def namespace(self) -> str:
        return ".".join((self.root, *self.segments))

    @property
    def qualified_key(self) -> str | None:
        if self.item is None:
            return None
        return f"{self.namespace}.{self.item}"


@dataclass
class Diagnostic:
    severity: Severity
    message: str
    subject: str | None = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "subject": self.subject,
        }


def emit(
    sink: list[Diagnostic],
    log: logging.Logger,
    severity: Severity,
    message: str,
    subject: str | None = None,
) -> Diagnostic:
    """Record a diagnostic and log it at the matching level."""
    diagnostic = Diagnostic(severity=severity, message=message, subject=subject)
    sink.append(diagnostic)
    log.log(severity.log_level, message)
    return diagnostic


@dataclass
class ImportStatement:
    """A ``use`` path found in a Rust source file."""
    file: str
    statement: str
    target_name: str
    line: int


@dataclass
class ImportResolution:
    """Outcome of resolving one raw import line."""
    raw: str
    reference: ImportReference | None
    status: ResolutionStatus
    features: frozenset[str] = frozenset()
    corrected_key: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict:
        ref = self.reference
        return {
            "raw": self.raw,
            "namespace": ref.namespace if ref else None,
            "item": ref.item if ref else None,
            "wildcard": ref.is_wildcard if ref else False,
            "status": self.status.value,
            "features": sorted(self.features),
            "corrected_key": self.corrected_key,
        }


@dataclass
class ResolutionResult:
    features: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    resolutions: list[ImportResolution] = field(default_factory=list)
    timings: dict[str, float] = field(default_factory=dict)
    duration_ms: float = 0.0

    def stats(self) -> dict[str, int]:
        counts = {status.value: 0 for status in ResolutionStatus}
        for resolution in self.resolutions:
            counts[resolution.status.value] += 1
        counts["imports"] = len(self.resolutions)
        counts["features"] = len(self.features)
        counts["warnings"] = sum(
            1 for d in self.diagnostics if d.severity is Severity.WARNING
        )
        return counts


@dataclass
class ToolConfig:
    scan_dir: str = "."
    catalog_path: str | None = None
    windows_version: str = DEFAULT_WINDOWS_VERSION
    cache_dir: str | None = None
    refresh: bool = False
    offline: bool = False
    crate_name: str = CRATE_NAME
    exclude_patterns: list[str] = field(default_factory=list)
    max_file_size: int = 1_000_000  # 1MB
    timeout: float = 30.0
    verbose: bool = False
    quiet: bool = False
