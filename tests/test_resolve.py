"""Tests for feature resolution and aggregation."""

from __future__ import annotations

import random
from unittest.mock import patch

import pytest

from winfeatures.config import (
    Catalog,
    NamespaceEntry,
    ResolutionStatus,
    Severity,
)
from winfeatures.graph.catalog_index import CatalogIndex
from winfeatures.phases.parsing import parse_import
from winfeatures.phases.resolve import resolve_all, resolve_reference


@pytest.fixture()
def catalog() -> Catalog:
    return Catalog(
        namespace_map=[
            "Windows.Win32.Devices.Display",
            "Windows.Win32.UI.WindowsAndMessaging",
            "Windows.Real.Namespace",
            "Windows.Win32.Foundation",
        ],
        feature_map=[
            "Win32_Devices_Display",
            "Win32_UI_WindowsAndMessaging",
            "X",
            "Win32_Foundation",
        ],
        namespaces={
            "0": [NamespaceEntry("DisplayConfigGetDeviceInfo", [0])],
            "1": [
                NamespaceEntry("CreateWindowExW", [1]),
                NamespaceEntry("GetMessageW", [1]),
                NamespaceEntry("MSG", [1]),
            ],
            "2": [NamespaceEntry("Foo", [2])],
            "3": [NamespaceEntry("HWND", [3]), NamespaceEntry("BOOL", None)],
        },
    )


@pytest.fixture()
def index(catalog) -> CatalogIndex:
    return CatalogIndex.build(catalog)


def _warnings(diagnostics):
    return [d for d in diagnostics if d.severity == Severity.WARNING]


class TestResolveReference:
    def test_exact_match(self, index):
        ref = parse_import("windows::Win32::Devices::Display::DisplayConfigGetDeviceInfo;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.EXACT
        assert res.features == frozenset({"Win32_Devices_Display"})
        assert res.diagnostics == []

    def test_wildcard_union(self, index):
        ref = parse_import("windows::Win32::UI::WindowsAndMessaging::*;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.WILDCARD
        assert res.features == frozenset({"Win32_UI_WindowsAndMessaging"})

    def test_wildcard_empty_namespace(self, index):
        ref = parse_import("windows::core::*;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.UNRESOLVED
        assert res.features == frozenset()
        assert "No features found for namespace: Windows.core" in res.diagnostics[0].message

    def test_wildcard_never_falls_back(self, index):
        # "Namespace" is a namespace component elsewhere, not an item.
        ref = parse_import("windows::Wrong::Namespace::*;")
        assert resolve_reference(ref, index).features == frozenset()

    def test_fallback_correction(self, index):
        ref = parse_import("windows::Wrong::Namespace::Foo;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.CORRECTED
        assert res.features == frozenset({"X"})
        assert res.corrected_key == "Windows.Real.Namespace.Foo"
        message = _warnings(res.diagnostics)[0].message
        assert "Windows.Wrong.Namespace.Foo" in message
        assert "Windows.Real.Namespace.Foo" in message

    def test_fallback_case_insensitive(self, index):
        ref = parse_import("windows::Win32::Foundation::Hwnd;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.CORRECTED
        assert res.corrected_key == "Windows.Win32.Foundation.HWND"
        assert res.features == frozenset({"Win32_Foundation"})

    def test_featureless_item_treated_as_miss(self, index):
        ref = parse_import("windows::Win32::Foundation::BOOL;")
        res = resolve_reference(ref, index)
        assert res.status == ResolutionStatus.UNRESOLVED
        assert res.features == frozenset()

    def test_graceful_miss(self, index):
        ref = parse_import("windows::Win32::Foundation::DoesNotExist;")
        res = resolve_reference(ref, index, raw="use windows::Win32::Foundation::DoesNotExist;")
        assert res.status == ResolutionStatus.UNRESOLVED
        assert res.features == frozenset()
        warnings = _warnings(res.diagnostics)
        assert len(warnings) == 1
        assert "No features found for item: Windows.Win32.Foundation.DoesNotExist" in warnings[0].message

    def test_ambiguous_fallback_reports_choice(self):
        idx = CatalogIndex.build(Catalog(
            namespace_map=["Windows.B", "Windows.A"],
            feature_map=["FB", "FA"],
            namespaces={"0": [NamespaceEntry("Dup", [0])], "1": [NamespaceEntry("Dup", [1])]},
        ))
        res = resolve_reference(parse_import("windows::C::Dup"), idx)
        assert res.corrected_key == "Windows.A.Dup"
        assert res.features == frozenset({"FA"})
        infos = [d for d in res.diagnostics if d.severity == Severity.INFO]
        assert "2 items named Dup" in infos[0].message

    def test_fallback_searches_candidates_once(self, index):
        with patch.object(index, "item_candidates", wraps=index.item_candidates) as candidates:
            res = resolve_reference(parse_import("windows::Win32::Foundation::Foo"), index)
        assert res.status == ResolutionStatus.CORRECTED
        candidates.assert_called_once_with("Foo", True)


class TestResolveAll:
    IMPORTS = [
        "windows::Win32::Devices::Display::DisplayConfigGetDeviceInfo;",
        "windows::Win32::UI::WindowsAndMessaging::*;",
        "windows::Wrong::Namespace::Foo;",
        "windows::Win32::Foundation::Missing;",
        "windows::Win32;",
    ]

    def test_merged_sorted_features(self, catalog):
        result = resolve_all(self.IMPORTS, catalog)
        assert result.features == [
            "Win32_Devices_Display",
            "Win32_UI_WindowsAndMessaging",
            "X",
        ]

    def test_accepts_prebuilt_index(self, index):
        result = resolve_all(self.IMPORTS[:1], index)
        assert result.features == ["Win32_Devices_Display"]

    def test_statuses_recorded_in_order(self, catalog):
        result = resolve_all(self.IMPORTS, catalog)
        assert [r.status for r in result.resolutions] == [
            ResolutionStatus.EXACT,
            ResolutionStatus.WILDCARD,
            ResolutionStatus.CORRECTED,
            ResolutionStatus.UNRESOLVED,
            ResolutionStatus.UNPARSEABLE,
        ]
        stats = result.stats()
        assert stats["imports"] == 5
        assert stats["features"] == 3

    def test_malformed_line_skipped(self, catalog):
        result = resolve_all(["windows::Win32;", "windows::Win32::Foundation::HWND;"], catalog)
        assert result.features == ["Win32_Foundation"]
        assert result.resolutions[0].reference is None
        assert "windows::Win32;" in result.diagnostics[0].message

    def test_idempotent(self, catalog):
        line = "windows::Wrong::Namespace::Foo;"
        once = resolve_all([line], catalog)
        twice = resolve_all([line, line], catalog)
        assert once.features == twice.features == ["X"]
        assert len(twice.resolutions) == 2

    def test_order_independent(self, catalog):
        expected = resolve_all(self.IMPORTS, catalog).features
        shuffled = list(self.IMPORTS)
        random.Random(7).shuffle(shuffled)
        assert resolve_all(shuffled, catalog).features == expected
        assert resolve_all(reversed(self.IMPORTS), catalog).features == expected

    def test_index_diagnostics_come_first(self):
        catalog = Catalog(
            namespace_map=["Windows.A"],
            feature_map=["F"],
            namespaces={"5": [NamespaceEntry("X", [0])], "0": [NamespaceEntry("Y", [0])]},
        )
        result = resolve_all(["windows::A::Y"], catalog)
        assert result.features == ["F"]
        assert result.diagnostics[0].message == "Index 5 out of range for namespace_map"

    def test_empty_input(self, catalog):
        result = resolve_all([], catalog)
        assert result.features == []
        assert result.resolutions == []
