"""Import parsing: raw ``windows::...`` text to an ImportReference."""

from __future__ import annotations

from winfeatures.config import CRATE_NAME, NAMESPACE_ROOT, WILDCARD, ImportReference

SEGMENT_DELIMITER = "::"
TERMINATOR = ";"


def parse_import(line: str, root: str = NAMESPACE_ROOT) -> ImportReference | None:
    """Parse one import statement into namespace segments and an item.

    ``windows::Win32::Foundation::HWND;`` -> segments ("Win32", "Foundation"),
    item "HWND". A trailing ``*`` yields a wildcard reference. The first token
    is the crate marker and is not inspected, so ``use windows`` works too.
    Returns None when the line cannot be split into namespace and item.
    """
    text = line.strip().rstrip(TERMINATOR).strip()
    tokens = [token.strip() for token in text.split(SEGMENT_DELIMITER)]
    if len(tokens) < 3:
        return None

    segments = tuple(tokens[1:-1])
    last = tokens[-1]
    if not last or not all(segments):
        return None

    if last == WILDCARD:
        return ImportReference(segments=segments, item=None, root=root)
    return ImportReference(segments=segments, item=last, root=root)


def format_import(reference: ImportReference, marker: str = CRATE_NAME) -> str:
    """Render a reference back to its ``::`` form."""
    last = WILDCARD if reference.item is None else reference.item
    return SEGMENT_DELIMITER.join((marker, *reference.segments, last))
