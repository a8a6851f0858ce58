"""
gohatch.generator - Project Materialization
===========================================

This module drives one generation run: it creates the project root, the
directory tree, then renders and writes every manifest entry.

Architecture
------------
A run is a small state machine:

    NOT_STARTED ──► ROOT_CREATED ──► DIRECTORIES_PLANNED ──► RENDERING ──► COMPLETED
         │                │                   │                  │
         └────────────────┴───────────────────┴──────────────────┴──► FAILED

1. Create the project root. Fails with ``AlreadyExistsError`` if it exists;
   nothing else is touched in that case.
2. Create every directory the manifest writes into.
3. For each manifest entry, in declaration order: resolve the template,
   render it, write the output, report progress.

The first error stops the run and is re-raised unchanged. Files written
before the failure are left on disk: the root was created by this run, so
nothing that existed before is at risk. There is no rollback.

Progress
--------
Pass ``on_progress`` to receive a :class:`ProgressEvent` after each entry
is written. Events are purely informational.

Usage Example
-------------
>>> from gohatch.generator import create_project
>>> from gohatch.models import VariableContext
>>>
>>> context = VariableContext.for_project("myapp")
>>> result = create_project(context, target_dir=Path("/tmp"))
>>> result.project_path
PosixPath('/tmp/myapp')

See Also
--------
- models.py: VariableContext
- manifest.py: Manifest and the bundled entries
- renderer.py: Template language
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from gohatch.errors import IOFailure
from gohatch.logging import get_logger
from gohatch.manifest import DEFAULT_MANIFEST, Manifest, ManifestEntry
from gohatch.planner import (
    create_directories,
    create_project_root,
    plan_directories,
    resolve_destination,
)
from gohatch.renderer import render
from gohatch.store import TemplateStore, default_store


if TYPE_CHECKING:
    from gohatch.models import VariableContext


logger = get_logger("generator")


# =============================================================================
# Run State and Events
# =============================================================================


class GenerationState(str, Enum):
    """Lifecycle states of a :class:`Materializer` run."""

    NOT_STARTED = "not_started"
    ROOT_CREATED = "root_created"
    DIRECTORIES_PLANNED = "directories_planned"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {GenerationState.COMPLETED, GenerationState.FAILED}


@dataclass(frozen=True)
class ProgressEvent:
    """
    Emitted after a manifest entry has been written.

    Attributes
    ----------
    completed : int
        Number of entries written so far, including this one.
    total : int
        Number of entries in the manifest.
    entry : ManifestEntry
        The entry just written.
    path : Path
        Absolute path of the written file.
    """

    completed: int
    total: int
    entry: ManifestEntry
    path: Path

    @property
    def fraction(self) -> float:
        """Share of entries processed, between 0 and 1."""
        return self.completed / self.total if self.total else 1.0


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class GenerationResult:
    """
    Result of a project generation operation.

    Attributes
    ----------
    success : bool
        Whether every manifest entry was written.
    project_path : Path
        Path of the project root.
    state : GenerationState
        State the run ended in.
    directories_created : list[Path]
        Directories created below the root.
    files_created : list[Path]
        Files written, in the order they were written.
    errors : list[str]
        Error messages (only populated if success=False).

    Examples
    --------
    >>> result = GenerationResult(success=True, project_path=Path("/home/user/myapp"))
    >>> result.files_created
    []
    """

    success: bool
    project_path: Path
    state: GenerationState = GenerationState.NOT_STARTED
    directories_created: list[Path] = field(default_factory=list)
    files_created: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def relative_files(self) -> list[PurePosixPath]:
        """Written files relative to the project root."""
        return [
            PurePosixPath(path.relative_to(self.project_path).as_posix())
            for path in self.files_created
        ]


# =============================================================================
# Materializer
# =============================================================================


class Materializer:
    """
    Drives a single generation run.

    A Materializer is single-use: :meth:`run` may be called once.

    Parameters
    ----------
    context : VariableContext
        Substitution values for the run.
    target_dir : Path
        Parent directory; the project root is ``target_dir / project_name``.
    manifest : Manifest
        Entries to generate. Use :meth:`Manifest.select` beforehand to pick
        a variant; the Materializer writes exactly what it is given.
    store : TemplateStore | None
        Template source. Defaults to the bundled templates.
    on_progress : ProgressCallback | None
        Called after each entry is written.
    """

    def __init__(
        self,
        context: VariableContext,
        target_dir: Path,
        manifest: Manifest,
        *,
        store: TemplateStore | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.context = context
        self.root = Path(target_dir) / context.project_name
        self.manifest = manifest
        self.store = store if store is not None else default_store()
        self.on_progress = on_progress
        self.state = GenerationState.NOT_STARTED
        self.result = GenerationResult(success=False, project_path=self.root)

    def _transition(self, state: GenerationState) -> None:
        logger.debug("%s: %s -> %s", self.context.project_name, self.state.value, state.value)
        self.state = state
        self.result.state = state

    def run(self) -> GenerationResult:
        """
        Execute the run.

        Returns
        -------
        GenerationResult
            The result, with ``success=True`` and state COMPLETED.

        Raises
        ------
        AlreadyExistsError
            If the project root exists. Nothing is created.
        IOFailure
            If a directory or file cannot be written.
        TemplateNotFoundError
            If a manifest entry names a template missing from the store.
        SubstitutionError
            If a template cannot be rendered.
        RuntimeError
            If the Materializer has already been run.
        """
        if self.state is not GenerationState.NOT_STARTED:
            raise RuntimeError(f"Materializer already used (state: {self.state.value})")

        logger.debug(
            "Generating %s into %s (%d files)",
            self.context.project_name,
            self.root,
            len(self.manifest),
        )
        try:
            create_project_root(self.root)
            self._transition(GenerationState.ROOT_CREATED)

            directories = create_directories(plan_directories(self.manifest, self.root))
            self.result.directories_created.extend(directories)
            self._transition(GenerationState.DIRECTORIES_PLANNED)

            self._transition(GenerationState.RENDERING)
            total = len(self.manifest)
            for index, entry in enumerate(self.manifest, start=1):
                path = self._materialize(entry)
                self.result.files_created.append(path)
                if self.on_progress is not None:
                    self.on_progress(ProgressEvent(index, total, entry, path))

        except Exception as e:
            self.result.errors.append(str(e))
            self._transition(GenerationState.FAILED)
            logger.error("Generation of %s failed: %s", self.context.project_name, e)
            raise

        self._transition(GenerationState.COMPLETED)
        self.result.success = True
        return self.result

    def _materialize(self, entry: ManifestEntry) -> Path:
        """Resolve, render and write one entry; return the written path."""
        path = resolve_destination(self.root, entry.destination)
        content = render(
            self.store.resolve(entry.template),
            self.context,
            identifier=entry.template,
        )
        try:
            path.write_bytes(content)
        except OSError as exc:
            raise IOFailure(path, exc) from exc
        logger.debug("Wrote %s (%d bytes)", entry.destination, len(content))
        return path


# =============================================================================
# Main Generation Function
# =============================================================================


def create_project(
    context: VariableContext,
    target_dir: Path | None = None,
    *,
    manifest: Manifest | None = None,
    store: TemplateStore | None = None,
    on_progress: ProgressCallback | None = None,
) -> GenerationResult:
    """
    Generate a new Go project from the bundled templates.

    This is the main entry point for project generation.

    Parameters
    ----------
    context : VariableContext
        Complete substitution values. Build it with
        :meth:`VariableContext.for_project` to get name validation.
    target_dir : Path | None
        Directory to create the project in. Defaults to the current
        working directory.
    manifest : Manifest | None
        Manifest to select the variant from. Defaults to the bundled
        manifest. Entries gated on a disabled feature are skipped.
    store : TemplateStore | None
        Template source. Defaults to the bundled templates.
    on_progress : ProgressCallback | None
        Receives a :class:`ProgressEvent` after each written file.

    Returns
    -------
    GenerationResult
        Result object with the written files.

    Raises
    ------
    AlreadyExistsError
        If ``target_dir / project_name`` already exists.
    IOFailure, TemplateNotFoundError, SubstitutionError
        If the run fails partway; already written files stay on disk.

    Examples
    --------
    >>> context = VariableContext.for_project("myapp", redis_enabled=False)
    >>> result = create_project(context, Path("/tmp"))
    >>> Path("/tmp/myapp/go.mod") in result.files_created
    True
    """
    selected = (manifest if manifest is not None else DEFAULT_MANIFEST).select(context)
    materializer = Materializer(
        context,
        target_dir if target_dir is not None else Path.cwd(),
        selected,
        store=store,
        on_progress=on_progress,
    )
    return materializer.run()


__all__ = [
    "GenerationResult",
    "GenerationState",
    "Materializer",
    "ProgressCallback",
    "ProgressEvent",
    "create_project",
]
