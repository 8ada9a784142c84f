"""windows-features - Determine the windows-rs cargo features a Rust crate needs."""

__version__ = "0.1.0"

from winfeatures.graph.catalog_index import CatalogIndex  # noqa: E402
from winfeatures.phases.parsing import parse_import  # noqa: E402
from winfeatures.phases.resolve import resolve_all, resolve_reference  # noqa: E402

__all__ = ["CatalogIndex", "parse_import", "resolve_all", "resolve_reference", "__version__"]
