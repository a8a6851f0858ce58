"""
Tests for gohatch.generator
===========================

This module contains tests for the materialization engine.
Tests cover the run state machine, failure behavior, progress
reporting, and end-to-end generation from the bundled templates.

Test Organization
-----------------
- TestMaterializer: Runs over a small in-memory template set
- TestFailures: Partial output and error propagation
- TestProgress: Progress events
- TestCreateProject: End-to-end generation of the bundled project
- TestGenerationResult: Result dataclass
"""

import errno
from pathlib import Path, PurePosixPath

import pytest

from gohatch.errors import (
    AlreadyExistsError,
    ErrorCategory,
    InvalidNameError,
    IOFailure,
    SubstitutionError,
    TemplateNotFoundError,
)
from gohatch.generator import (
    GenerationResult,
    GenerationState,
    Materializer,
    ProgressEvent,
    create_project,
)
from gohatch.manifest import DEFAULT_MANIFEST, Manifest, ManifestEntry
from gohatch.models import VariableContext
from gohatch.store import InMemoryTemplateStore


def tree(root: Path) -> dict[str, bytes]:
    """Every file below root, keyed by POSIX relative path."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# =============================================================================
# Materializer Tests
# =============================================================================

class TestMaterializer:
    """Tests for a single Materializer run."""

    def test_run_writes_all_entries(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        """Each entry is rendered into its destination."""
        result = Materializer(context, temp_dir, memory_manifest, store=memory_store).run()

        assert result.success
        assert result.state is GenerationState.COMPLETED
        assert result.project_path == temp_dir / "myapp"
        assert tree(result.project_path) == {
            "go.mod": b"module github.com/user/myapp\n",
            "main.go": b"package main // myapp\n",
            "infra/cache.go": b"package infra\n// redis\n",
            "web/rest/handler.go": b"package rest // mysql\n",
        }

    def test_files_in_manifest_order(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        result = Materializer(context, temp_dir, memory_manifest, store=memory_store).run()
        assert result.relative_files == list(memory_manifest.destinations)

    def test_directories_created(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        result = Materializer(context, temp_dir, memory_manifest, store=memory_store).run()
        root = result.project_path

        assert result.directories_created == [root / "infra", root / "web", root / "web" / "rest"]

    def test_writes_exactly_what_it_is_given(
        self,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        """The Materializer does not filter; gating happens in select()."""
        ctx = VariableContext.for_project("myapp", redis_enabled=False)
        result = Materializer(ctx, temp_dir, memory_manifest, store=memory_store).run()

        assert (result.project_path / "infra" / "cache.go").read_bytes() == b"package infra\n"

    def test_single_use(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        materializer = Materializer(context, temp_dir, memory_manifest, store=memory_store)
        materializer.run()

        with pytest.raises(RuntimeError, match="already used"):
            materializer.run()

    def test_empty_manifest(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
    ) -> None:
        """An empty manifest still creates the root."""
        result = Materializer(context, temp_dir, Manifest([]), store=memory_store).run()

        assert result.success
        assert result.project_path.is_dir()
        assert list(result.project_path.iterdir()) == []


# =============================================================================
# Failure Tests
# =============================================================================

class TestFailures:
    """Tests for runs that stop partway."""

    def test_root_exists(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        """An existing root is left untouched."""
        (temp_dir / "myapp").mkdir()
        materializer = Materializer(context, temp_dir, memory_manifest, store=memory_store)

        with pytest.raises(AlreadyExistsError):
            materializer.run()

        assert materializer.state is GenerationState.FAILED
        assert list((temp_dir / "myapp").iterdir()) == []

    def test_substitution_error_keeps_earlier_files(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
    ) -> None:
        manifest = Manifest(
            [
                ManifestEntry.for_template("main.go.tmpl"),
                ManifestEntry.for_template("broken.go.tmpl"),
                ManifestEntry.for_template("web/rest/handler.go.tmpl"),
            ]
        )
        materializer = Materializer(context, temp_dir, manifest, store=memory_store)

        with pytest.raises(SubstitutionError) as excinfo:
            materializer.run()

        root = temp_dir / "myapp"
        assert excinfo.value.template == "broken.go.tmpl"
        assert materializer.state is GenerationState.FAILED
        assert materializer.result.success is False
        assert materializer.result.errors
        assert (root / "main.go").exists()
        assert not (root / "broken.go").exists()
        assert not (root / "web" / "rest" / "handler.go").exists()
        # Directories are created before any file
        assert (root / "web" / "rest").is_dir()

    def test_template_not_found(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
    ) -> None:
        manifest = Manifest([ManifestEntry.for_template("missing.go.tmpl")])

        with pytest.raises(TemplateNotFoundError):
            Materializer(context, temp_dir, manifest, store=memory_store).run()

    def test_disk_full(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def full(self: Path, data: bytes) -> int:
            raise OSError(errno.ENOSPC, "No space left on device", str(self))

        monkeypatch.setattr(Path, "write_bytes", full)

        with pytest.raises(IOFailure) as excinfo:
            Materializer(context, temp_dir, memory_manifest, store=memory_store).run()
        assert excinfo.value.kind is ErrorCategory.DISK_SPACE
        assert excinfo.value.path == temp_dir / "myapp" / "go.mod"

    def test_permission_denied(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def deny(self: Path, data: bytes) -> int:
            raise PermissionError(errno.EACCES, "Permission denied", str(self))

        monkeypatch.setattr(Path, "write_bytes", deny)

        with pytest.raises(IOFailure) as excinfo:
            Materializer(context, temp_dir, memory_manifest, store=memory_store).run()
        assert excinfo.value.kind is ErrorCategory.PERMISSION


# =============================================================================
# Progress Tests
# =============================================================================

class TestProgress:
    """Tests for progress reporting."""

    def test_events_follow_manifest(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        events: list[ProgressEvent] = []
        Materializer(
            context, temp_dir, memory_manifest, store=memory_store, on_progress=events.append
        ).run()

        assert [event.completed for event in events] == [1, 2, 3, 4]
        assert all(event.total == 4 for event in events)
        assert [event.entry for event in events] == list(memory_manifest)
        assert events[-1].fraction == 1.0

    def test_event_written_before_report(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        """The file exists by the time its event arrives."""
        seen: list[bool] = []
        Materializer(
            context,
            temp_dir,
            memory_manifest,
            store=memory_store,
            on_progress=lambda event: seen.append(event.path.is_file()),
        ).run()

        assert seen == [True] * 4

    def test_fraction_empty_total(self) -> None:
        event = ProgressEvent(0, 0, ManifestEntry("a.tmpl", "a"), Path("a"))
        assert event.fraction == 1.0


# =============================================================================
# End-to-End Tests
# =============================================================================

@pytest.mark.integration
class TestCreateProject:
    """End-to-end generation from the bundled templates."""

    def test_full_project(self, context: VariableContext, temp_dir: Path) -> None:
        result = create_project(context, temp_dir)

        files = tree(result.project_path)
        assert set(files) == {dest.as_posix() for dest in DEFAULT_MANIFEST.destinations}
        assert all(content for content in files.values())
        assert not any(name.endswith(".tmpl") for name in files)

    def test_go_mod(self, context: VariableContext, temp_dir: Path) -> None:
        result = create_project(context, temp_dir)
        go_mod = (result.project_path / "go.mod").read_text()

        assert go_mod.startswith("module github.com/user/myapp\n")
        assert "gorm.io/driver/mysql" in go_mod
        assert "gorm.io/driver/postgres" not in go_mod

    def test_no_unrendered_actions(self, context: VariableContext, temp_dir: Path) -> None:
        result = create_project(context, temp_dir)
        for name, content in tree(result.project_path).items():
            assert b"{{" not in content, name

    def test_readme_author(self, context: VariableContext, temp_dir: Path) -> None:
        result = create_project(context, temp_dir)
        readme = (result.project_path / "README.md").read_text()

        assert readme.startswith("# myapp")
        assert "Test Author <test@example.com>" in readme
        assert "2026-01-01" in readme

    def test_custom_module_path(self, temp_dir: Path) -> None:
        ctx = VariableContext.for_project("svc", module_path="example.com/acme/svc")
        result = create_project(ctx, temp_dir)

        main_go = (result.project_path / "cmd" / "main.go").read_text()
        assert "example.com/acme/svc/" in main_go
        assert "github.com/user" not in main_go

    def test_postgres(self, temp_dir: Path) -> None:
        ctx = VariableContext.for_project("svc", database_type="postgres")
        result = create_project(ctx, temp_dir)

        go_mod = (result.project_path / "go.mod").read_text()
        assert "gorm.io/driver/postgres" in go_mod
        assert "gorm.io/driver/mysql" not in go_mod

    def test_disabled_features_leave_no_trace(self, temp_dir: Path) -> None:
        """Disabled features appear in neither file names nor contents."""
        ctx = VariableContext.for_project(
            "lean", redis_enabled=False, metrics_enabled=False, pprof_enabled=False
        )
        result = create_project(ctx, temp_dir)
        files = tree(result.project_path)

        assert "infra/cache/redis.go" not in files
        assert "infra/monitor/monitor.go" not in files
        for name, content in files.items():
            lowered = content.lower()
            assert b"redis" not in lowered, name
            assert b"prometheus" not in lowered, name
            assert b"pprof" not in lowered, name

    def test_deterministic(self, context: VariableContext, tmp_path: Path) -> None:
        """Two runs with the same context produce identical trees."""
        first = create_project(context, tmp_path / "one")
        second = create_project(context, tmp_path / "two")

        assert tree(first.project_path) == tree(second.project_path)

    def test_already_exists(self, context: VariableContext, temp_dir: Path) -> None:
        (temp_dir / "myapp").mkdir()

        with pytest.raises(AlreadyExistsError):
            create_project(context, temp_dir)
        assert list((temp_dir / "myapp").iterdir()) == []

    def test_invalid_name_creates_nothing(self, temp_dir: Path) -> None:
        with pytest.raises(InvalidNameError):
            create_project(VariableContext.for_project("1bad"), temp_dir)
        assert list(temp_dir.iterdir()) == []

    def test_default_target_is_cwd(
        self, context: VariableContext, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(temp_dir)
        result = create_project(context)
        assert result.project_path == Path.cwd() / "myapp"
        assert (temp_dir / "myapp" / "go.mod").is_file()

    def test_custom_store_and_manifest(
        self,
        context: VariableContext,
        temp_dir: Path,
        memory_store: InMemoryTemplateStore,
        memory_manifest: Manifest,
    ) -> None:
        """Gated entries are dropped before the run."""
        ctx = context.model_copy(update={"redis_enabled": False})
        result = create_project(ctx, temp_dir, manifest=memory_manifest, store=memory_store)

        assert PurePosixPath("infra/cache.go") not in result.relative_files
        assert not (temp_dir / "myapp" / "infra").exists()


# =============================================================================
# GenerationResult Tests
# =============================================================================

class TestGenerationResult:
    """Tests for the GenerationResult dataclass."""

    def test_default_values(self) -> None:
        """Test default values for GenerationResult."""
        result = GenerationResult(success=True, project_path=Path("/tmp/test"))

        assert result.success is True
        assert result.state is GenerationState.NOT_STARTED
        assert result.files_created == []
        assert result.errors == []

    def test_relative_files(self) -> None:
        result = GenerationResult(
            success=True,
            project_path=Path("/tmp/app"),
            files_created=[Path("/tmp/app/go.mod"), Path("/tmp/app/cmd/main.go")],
        )
        assert result.relative_files == [PurePosixPath("go.mod"), PurePosixPath("cmd/main.go")]

    def test_terminal_states(self) -> None:
        assert GenerationState.COMPLETED.is_terminal
        assert GenerationState.FAILED.is_terminal
        assert not GenerationState.RENDERING.is_terminal
