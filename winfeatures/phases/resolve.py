"""Feature resolution: import references to required windows-rs features."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from winfeatures.config import (
    Catalog,
    Diagnostic,
    ImportReference,
    ImportResolution,
    ResolutionResult,
    ResolutionStatus,
    Severity,
    emit,
)
from winfeatures.graph.catalog_index import CatalogIndex
from winfeatures.phases.parsing import parse_import

logger = logging.getLogger(__name__)


def _attempt_fix_import(
    reference: ImportReference,
    index: CatalogIndex,
    diagnostics: list[Diagnostic],
) -> tuple[str, frozenset[str]] | None:
    """Find a mis-namespaced item by name alone.

    Case-insensitive first, then case-sensitive.
    """
    for case_insensitive in (True, False):
        candidates = index.item_candidates(reference.item, case_insensitive)
        if not candidates:
            continue
        key = candidates[0]
        if len(candidates) > 1:
            emit(
                diagnostics, logger, Severity.INFO,
                f"{len(candidates)} items named {reference.item} in catalog; chose {key}",
                subject=reference.qualified_key,
            )
        return key, index.exact(key)
    return None


def resolve_reference(
    reference: ImportReference,
    index: CatalogIndex,
    raw: str | None = None,
) -> ImportResolution:
    """Resolve one reference. Never raises; misses degrade to an empty set."""
    diagnostics: list[Diagnostic] = []
    raw = raw if raw is not None else reference.qualified_key or reference.namespace

    if reference.is_wildcard:
        namespace = reference.namespace
        logger.info(f"Processing wildcard import for namespace: {namespace}")
        features = index.by_namespace_prefix(namespace)
        if not features:
            emit(
                diagnostics, logger, Severity.WARNING,
                f"No features found for namespace: {namespace}",
                subject=namespace,
            )
            return ImportResolution(
                raw=raw, reference=reference, status=ResolutionStatus.UNRESOLVED,
                diagnostics=diagnostics,
            )
        return ImportResolution(
            raw=raw, reference=reference, status=ResolutionStatus.WILDCARD,
            features=features, diagnostics=diagnostics,
        )

    full_name = reference.qualified_key
    features = index.exact(full_name)
    if features:
        return ImportResolution(
            raw=raw, reference=reference, status=ResolutionStatus.EXACT,
            features=features, diagnostics=diagnostics,
        )

    fixed = _attempt_fix_import(reference, index, diagnostics)
    if fixed is not None:
        corrected_key, features = fixed
        emit(
            diagnostics, logger, Severity.WARNING,
            f"Corrected namespace for {full_name} to match existing item: {corrected_key}",
            subject=full_name,
        )
        return ImportResolution(
            raw=raw, reference=reference, status=ResolutionStatus.CORRECTED,
            features=features, corrected_key=corrected_key, diagnostics=diagnostics,
        )

    emit(
        diagnostics, logger, Severity.WARNING,
        f"No features found for item: {full_name} (import: {raw})",
        subject=full_name,
    )
    return ImportResolution(
        raw=raw, reference=reference, status=ResolutionStatus.UNRESOLVED,
        diagnostics=diagnostics,
    )


def resolve_all(
    raw_imports: Iterable[str],
    catalog: Catalog | CatalogIndex,
) -> ResolutionResult:
    """Parse and resolve every raw import and merge the required features."""
    index = catalog if isinstance(catalog, CatalogIndex) else CatalogIndex.build(catalog)

    required: set[str] = set()
    diagnostics: list[Diagnostic] = list(index.diagnostics)
    resolutions: list[ImportResolution] = []

    for raw in raw_imports:
        reference = parse_import(raw)
        if reference is None:
            line_diagnostics: list[Diagnostic] = []
            emit(
                line_diagnostics, logger, Severity.WARNING,
                f"Could not determine namespace and item for import: {raw}",
                subject=raw,
            )
            resolution = ImportResolution(
                raw=raw, reference=None, status=ResolutionStatus.UNPARSEABLE,
                diagnostics=line_diagnostics,
            )
        else:
            resolution = resolve_reference(reference, index, raw=raw)

        required.update(resolution.features)
        diagnostics.extend(resolution.diagnostics)
        resolutions.append(resolution)

    return ResolutionResult(
        features=sorted(required),
        diagnostics=diagnostics,
        resolutions=resolutions,
    )
