"""Loading, downloading and caching the windows-rs features.json catalog."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click
import requests

from winfeatures.config import Catalog, NamespaceEntry, ToolConfig

logger = logging.getLogger(__name__)

APP_NAME = "windows-features"
FEATURES_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/microsoft/windows-rs/"
    "{version}/crates/libs/windows/features.json"
)


class CatalogError(Exception):
    """The catalog could not be obtained or does not match the expected shape."""


def _string_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CatalogError(f"'{key}' must be a list of strings")
    return value


def _parse_entry(raw: Any, ns_key: str) -> NamespaceEntry:
    if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
        raise CatalogError(f"Entry in namespace {ns_key} has no string 'name'")
    features = raw.get("features")
    if features is not None:
        if not isinstance(features, list) or not all(
            isinstance(f, int) and not isinstance(f, bool) for f in features
        ):
            raise CatalogError(
                f"'features' of {raw['name']} in namespace {ns_key} must be a list of integers"
            )
    return NamespaceEntry(name=raw["name"], features=features)


def parse_catalog(data: Any) -> Catalog:
    """Deserialize the features.json document.

    Only the shape is checked here. Out-of-range indices are left for
    CatalogIndex to skip.
    """
    if not isinstance(data, dict):
        raise CatalogError("features.json must contain a JSON object")

    namespace_map = _string_list(data, "namespace_map")
    feature_map = _string_list(data, "feature_map")

    raw_namespaces = data.get("namespaces")
    if not isinstance(raw_namespaces, dict):
        raise CatalogError("'namespaces' must be an object")

    namespaces: dict[str, list[NamespaceEntry]] = {}
    for ns_key, entries in raw_namespaces.items():
        if not isinstance(entries, list):
            raise CatalogError(f"Namespace {ns_key} must map to a list of entries")
        namespaces[ns_key] = [_parse_entry(e, ns_key) for e in entries]

    return Catalog(
        namespace_map=namespace_map,
        feature_map=feature_map,
        namespaces=namespaces,
    )


def read_catalog(path: str | Path) -> Catalog:
    """Read and parse a local features.json."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogError(f"Failed to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Failed to parse {path}: {e}") from e
    return parse_catalog(data)


def features_url(version: str) -> str:
    return FEATURES_URL_TEMPLATE.format(version=version)


def download_catalog(url: str, timeout: float = 30.0) -> str:
    """Fetch the raw features.json text."""
    logger.info(f"Downloading features.json from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise CatalogError(f"Failed to download features.json: {e}") from e
    return response.text


def default_cache_dir() -> Path:
    return Path(click.get_app_dir(APP_NAME))


def cached_catalog_path(cache_dir: str | Path | None, version: str) -> Path:
    base = Path(cache_dir) if cache_dir else default_cache_dir()
    return base / f"features-{version}.json"


def load_catalog(config: ToolConfig) -> Catalog:
    """Return the catalog from an explicit path, the cache, or a download."""
    if config.catalog_path:
        logger.info(f"Using features.json at {config.catalog_path}")
        return read_catalog(config.catalog_path)

    path = cached_catalog_path(config.cache_dir, config.windows_version)
    if path.exists() and not config.refresh:
        logger.info(f"features.json already exists locally at {path}")
        return read_catalog(path)

    if config.offline:
        raise CatalogError(
            f"No cached features.json for windows {config.windows_version} at {path} "
            "and downloads are disabled"
        )

    text = download_catalog(features_url(config.windows_version), config.timeout)
    try:
        catalog = parse_catalog(json.loads(text))
    except json.JSONDecodeError as e:
        raise CatalogError(f"Failed to parse downloaded features.json: {e}") from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Failed to write {path}: {e}") from e

    logger.debug(f"Loaded features.json with {len(catalog.namespace_map)} namespaces")
    return catalog
