"""Rust ``use`` declaration extraction."""

from __future__ import annotations

import logging
import re

import tree_sitter
import tree_sitter_rust as ts_rust

from winfeatures.config import CRATE_NAME, ImportStatement

logger = logging.getLogger(__name__)

_USE_PREFIX = re.compile(r"^(pub(\s*\([^)]*\))?\s+)?use\s")
_PATH_NODES = (
    "identifier", "scoped_identifier", "use_wildcard",
    "crate", "super", "metavariable",
)


def _text(node) -> str:
    # Paths may be split across lines; drop all whitespace.
    return "".join(node.text.decode("utf-8").split())


def _join(prefix: str, path: str) -> str:
    path = path[2:] if path.startswith("::") else path
    if not prefix:
        return path
    return f"{prefix}::{path}"


class RustAnalyser:
    extensions = [".rs"]
    language_name = "rust"

    def __init__(self) -> None:
        self._parser: tree_sitter.Parser | None = None

    def get_language(self) -> tree_sitter.Language:
        return tree_sitter.Language(ts_rust.language())

    def get_parser(self) -> tree_sitter.Parser:
        if self._parser is None:
            self._parser = tree_sitter.Parser(self.get_language())
        return self._parser

    def parse(self, source: bytes) -> tree_sitter.Tree:
        return self.get_parser().parse(source)

    def extract_imports(
        self, tree: tree_sitter.Tree, source: bytes, file_path: str,
        crate_name: str = CRATE_NAME,
    ) -> list[ImportStatement]:
        """Every ``use`` path rooted at ``crate_name``, grouped lists expanded."""
        imports: list[ImportStatement] = []
        self._find_uses(tree.root_node, file_path, crate_name, imports)
        return imports

    def _find_uses(self, node, file_path, crate_name, imports):
        if node.type == "use_declaration":
            argument = node.child_by_field_name("argument")
            if argument is not None:
                statement = node.text.decode("utf-8").strip()
                for path in self._expand(argument, ""):
                    if path.split("::", 1)[0] != crate_name:
                        continue
                    imports.append(ImportStatement(
                        file=file_path,
                        statement=statement,
                        target_name=path,
                        line=node.start_point[0] + 1,
                    ))
            return
        for child in node.children:
            self._find_uses(child, file_path, crate_name, imports)

    def _expand(self, node, prefix: str) -> list[str]:
        """Flatten a use tree into full ``::`` paths."""
        kind = node.type
        if kind == "use_as_clause":
            path = node.child_by_field_name("path")
            return self._expand(path, prefix) if path is not None else []
        if kind == "scoped_use_list":
            path = node.child_by_field_name("path")
            use_list = node.child_by_field_name("list")
            if path is not None:
                prefix = _join(prefix, _text(path))
            return self._expand(use_list, prefix) if use_list is not None else []
        if kind == "use_list":
            paths: list[str] = []
            for child in node.named_children:
                paths.extend(self._expand(child, prefix))
            return paths
        if kind == "self":
            logger.debug(f"Skipping module self-import of {prefix}")
            return []
        if kind in _PATH_NODES:
            return [_join(prefix, _text(node))]
        return []

    def expand_use_text(self, text: str, crate_name: str = CRATE_NAME) -> list[str]:
        """Expand a single statement, e.g. a text-search hit, into use paths."""
        source = text.strip()
        if not _USE_PREFIX.match(source):
            source = f"use {source}"
        if not source.endswith(";"):
            source += ";"
        data = source.encode("utf-8")
        imports = self.extract_imports(self.parse(data), data, "<input>", crate_name)
        return [imp.target_name for imp in imports]
