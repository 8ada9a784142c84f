"""Language analysers for locating crate imports in source trees."""

from __future__ import annotations

from winfeatures.languages.rust import RustAnalyser

_ANALYSER: RustAnalyser | None = None


def get_analyser() -> RustAnalyser:
    """Shared Rust analyser; its tree-sitter parser is created once."""
    global _ANALYSER
    if _ANALYSER is None:
        _ANALYSER = RustAnalyser()
    return _ANALYSER


def supported_extensions() -> set[str]:
    return set(RustAnalyser.extensions)
