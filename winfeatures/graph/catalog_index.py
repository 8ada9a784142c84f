"""Qualified-name to feature-set index built from a features catalog."""

from __future__ import annotations

import logging
import string

from winfeatures.config import Catalog, Diagnostic, Severity, emit

logger = logging.getLogger(__name__)


def _parse_index(raw: str) -> int | None:
    """Parse a namespace key as an unsigned integer (ASCII digits only)."""
    if not raw or not raw.isascii() or not raw.isdigit():
        return None
    return int(raw)


def _item_name(key: str) -> str:
    return key.rsplit(".", 1)[-1]


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _fold(name: str) -> str:
    """Lower-case A-Z only; other characters compare as-is."""
    return name.translate(_ASCII_LOWER)


class CatalogIndex:
    """Immutable lookup tables over a Catalog.

    features: "<namespace>.<item>" -> frozenset of feature names
    item_index: item name -> sorted qualified keys
    folded_index: ASCII-folded item name -> sorted qualified keys

    Keys with no resolvable features are left out, so they behave as misses.
    """

    def __init__(
        self,
        features: dict[str, frozenset[str]],
        diagnostics: list[Diagnostic] | None = None,
    ) -> None:
        self._features = dict(features)
        self._keys = sorted(self._features)
        self.diagnostics: list[Diagnostic] = list(diagnostics or [])

        item_index: dict[str, list[str]] = {}
        folded_index: dict[str, list[str]] = {}
        for key in self._keys:
            name = _item_name(key)
            item_index.setdefault(name, []).append(key)
            folded_index.setdefault(_fold(name), []).append(key)
        self._item_index = item_index
        self._folded_index = folded_index

    @classmethod
    def build(cls, catalog: Catalog) -> CatalogIndex:
        """Build the index, skipping (with a warning) any out-of-range index."""
        diagnostics: list[Diagnostic] = []
        collected: dict[str, set[str]] = {}

        for raw_idx, entries in catalog.namespaces.items():
            idx = _parse_index(raw_idx)
            if idx is None:
                emit(
                    diagnostics, logger, Severity.WARNING,
                    f"Invalid namespace index {raw_idx!r}", subject=raw_idx,
                )
                continue
            if idx >= len(catalog.namespace_map):
                emit(
                    diagnostics, logger, Severity.WARNING,
                    f"Index {idx} out of range for namespace_map", subject=raw_idx,
                )
                continue

            namespace = catalog.namespace_map[idx]
            for entry in entries:
                full_name = f"{namespace}.{entry.name}"
                for fi in entry.features or ():
                    if 0 <= fi < len(catalog.feature_map):
                        collected.setdefault(full_name, set()).add(catalog.feature_map[fi])
                    else:
                        emit(
                            diagnostics, logger, Severity.WARNING,
                            f"Feature index {fi} out of bounds for feature_map "
                            f"(item: {full_name})",
                            subject=full_name,
                        )

        index = cls(
            {key: frozenset(feats) for key, feats in collected.items() if feats},
            diagnostics,
        )
        logger.debug(
            f"Indexed {len(index)} items across {len(catalog.namespace_map)} namespaces"
        )
        return index

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, key: object) -> bool:
        return key in self._features

    def keys(self) -> list[str]:
        """All qualified keys in lexicographic order."""
        return list(self._keys)

    def namespaces(self) -> list[str]:
        return sorted({key.rsplit(".", 1)[0] for key in self._keys if "." in key})

    def feature_names(self) -> list[str]:
        names: set[str] = set()
        for feats in self._features.values():
            names.update(feats)
        return sorted(names)

    def exact(self, qualified_key: str) -> frozenset[str] | None:
        return self._features.get(qualified_key)

    def by_namespace_prefix(self, namespace: str) -> frozenset[str]:
        """Union of features for every key under ``namespace``.

        Matches at a component boundary: ``Foo.Ba`` never matches ``Foo.Bar.X``.
        """
        prefix = f"{namespace}."
        union: set[str] = set()
        for key, feats in self._features.items():
            if key.startswith(prefix):
                union.update(feats)
        return frozenset(union)

    def item_candidates(self, item_name: str, case_insensitive: bool) -> list[str]:
        """Qualified keys whose last segment is ``item_name``, in tie-break order.

        Keys are ordered lexicographically. In case-insensitive mode, keys whose
        item name matches with the same casing come first.
        """
        if not case_insensitive:
            return list(self._item_index.get(item_name, []))
        matches = self._folded_index.get(_fold(item_name), [])
        same_case = [k for k in matches if _item_name(k) == item_name]
        other_case = [k for k in matches if _item_name(k) != item_name]
        return same_case + other_case

    def by_item_name(
        self, item_name: str, case_insensitive: bool,
    ) -> tuple[str, frozenset[str]] | None:
        candidates = self.item_candidates(item_name, case_insensitive)
        if not candidates:
            return None
        key = candidates[0]
        return key, self._features[key]
