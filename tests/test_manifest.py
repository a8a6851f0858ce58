"""
Tests for gohatch.manifest
==========================

Test Organization
-----------------
- TestOutputPath: Template name to output name
- TestManifestEntry: Destination validation
- TestManifest: Ordering and uniqueness
- TestDefaultManifest: The bundled project layout
"""

from pathlib import PurePosixPath

import pytest

from gohatch.manifest import (
    DEFAULT_MANIFEST,
    Manifest,
    ManifestEntry,
    output_path,
    select_manifest,
)
from gohatch.models import VariableContext


# =============================================================================
# Naming Tests
# =============================================================================

class TestOutputPath:
    """Tests for output_path."""

    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("cmd/main.go.tmpl", "cmd/main.go"),
            (".go.mod.tmpl", "go.mod"),
            ("gitignore.tmpl", ".gitignore"),
            ("README.md.tmpl", "README.md"),
            ("config/conf.yml.tmpl", "config/conf.yml"),
            ("LICENSE", "LICENSE"),
        ],
    )
    def test_mapping(self, identifier: str, expected: str) -> None:
        assert output_path(identifier) == PurePosixPath(expected)


# =============================================================================
# ManifestEntry Tests
# =============================================================================

class TestManifestEntry:
    """Tests for ManifestEntry validation."""

    def test_string_destination_converted(self) -> None:
        entry = ManifestEntry("a.tmpl", "web/a.go")
        assert entry.destination == PurePosixPath("web/a.go")

    @pytest.mark.parametrize(
        "destination",
        ["/etc/passwd", "../outside.go", "web/../../x.go", "", ".", "web\\a.go"],
    )
    def test_invalid_destination(self, destination: str) -> None:
        with pytest.raises(ValueError):
            ManifestEntry("a.tmpl", destination)

    def test_unknown_flag(self) -> None:
        with pytest.raises(ValueError, match="feature flag"):
            ManifestEntry("a.tmpl", "a.go", requires="kafka_enabled")

    def test_applies_to(self) -> None:
        entry = ManifestEntry.for_template("cache.go.tmpl", requires="redis_enabled")

        assert entry.applies_to(VariableContext.for_project("app"))
        assert not entry.applies_to(VariableContext.for_project("app", redis_enabled=False))

    def test_ungated_always_applies(self) -> None:
        entry = ManifestEntry.for_template("main.go.tmpl")
        assert entry.applies_to(VariableContext.for_project("app", redis_enabled=False))


# =============================================================================
# Manifest Tests
# =============================================================================

class TestManifest:
    """Tests for the Manifest container."""

    def test_preserves_order(self) -> None:
        manifest = Manifest(
            [
                ManifestEntry("z.tmpl", "z.go"),
                ManifestEntry("a.tmpl", "a.go"),
                ManifestEntry("m.tmpl", "m/m.go"),
            ]
        )
        assert manifest.templates == ("z.tmpl", "a.tmpl", "m.tmpl")
        assert manifest[1].destination == PurePosixPath("a.go")
        assert len(manifest) == 3

    def test_duplicate_destination(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            Manifest([ManifestEntry("a.tmpl", "x.go"), ManifestEntry("b.tmpl", "x.go")])

    def test_file_and_directory_collision(self) -> None:
        with pytest.raises(ValueError, match="directory"):
            Manifest([ManifestEntry("a.tmpl", "web"), ManifestEntry("b.tmpl", "web/x.go")])

    def test_select_keeps_order(self, memory_manifest: Manifest) -> None:
        ctx = VariableContext.for_project("app", redis_enabled=False)
        selected = memory_manifest.select(ctx)

        assert selected.templates == (
            ".go.mod.tmpl",
            "main.go.tmpl",
            "web/rest/handler.go.tmpl",
        )

    def test_select_all_enabled(self, memory_manifest: Manifest) -> None:
        selected = memory_manifest.select(VariableContext.for_project("app"))
        assert selected.entries == memory_manifest.entries

    def test_repr(self, memory_manifest: Manifest) -> None:
        assert repr(memory_manifest) == "Manifest(4 entries)"


# =============================================================================
# Bundled Manifest Tests
# =============================================================================

class TestDefaultManifest:
    """Tests for the bundled project layout."""

    def test_no_template_suffix_in_outputs(self) -> None:
        for destination in DEFAULT_MANIFEST.destinations:
            assert not destination.name.endswith(".tmpl")

    def test_project_files_first(self) -> None:
        assert DEFAULT_MANIFEST.destinations[:3] == (
            PurePosixPath("go.mod"),
            PurePosixPath(".gitignore"),
            PurePosixPath("README.md"),
        )

    def test_gated_entries(self) -> None:
        gated = {
            entry.destination.as_posix(): entry.requires
            for entry in DEFAULT_MANIFEST
            if entry.requires
        }
        assert gated == {
            "infra/cache/redis.go": "redis_enabled",
            "infra/monitor/monitor.go": "metrics_enabled",
        }

    def test_variants(self) -> None:
        full = select_manifest(VariableContext.for_project("app"))
        minimal = select_manifest(
            VariableContext.for_project(
                "app", redis_enabled=False, metrics_enabled=False, pprof_enabled=False
            )
        )

        assert len(full) == len(DEFAULT_MANIFEST)
        assert len(minimal) == len(DEFAULT_MANIFEST) - 2
        assert PurePosixPath("infra/cache/redis.go") not in minimal.destinations
