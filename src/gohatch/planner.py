"""
gohatch.planner - Directory Planning and Creation
=================================================

Works out which directories a manifest needs and creates them before any
file is written.

The project root is special: it must not exist before the run. It is
created with ``exist_ok=False`` so that the existence check and the
creation are a single filesystem operation. Every other directory is
created idempotently.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from gohatch.errors import AlreadyExistsError, IOFailure
from gohatch.logging import get_logger


if TYPE_CHECKING:
    from gohatch.manifest import Manifest


logger = get_logger("planner")


def resolve_destination(root: Path, destination: PurePosixPath) -> Path:
    """
    Absolute output path for a manifest destination.

    Parameters
    ----------
    root : Path
        Project root directory.
    destination : PurePosixPath
        Destination relative to ``root``.

    Returns
    -------
    Path
        ``root / destination``.

    Raises
    ------
    ValueError
        If the result does not lie strictly inside ``root``.
    """
    target = root.joinpath(*destination.parts)
    resolved_root = root.resolve()
    resolved = target.resolve()
    if resolved == resolved_root or resolved_root not in resolved.parents:
        raise ValueError(f"Destination {destination} escapes project root {root}")
    return target


def plan_directories(manifest: Manifest, root: Path) -> set[Path]:
    """
    Every directory below ``root`` that the manifest writes into.

    This is the union of all ancestors of every destination, excluding the
    root itself.

    Examples
    --------
    >>> from gohatch.manifest import Manifest, ManifestEntry
    >>> m = Manifest([ManifestEntry("a.tmpl", "web/rest/a.go")])
    >>> sorted(p.as_posix() for p in plan_directories(m, Path("app")))
    ['app/web', 'app/web/rest']
    """
    directories: set[Path] = set()
    for entry in manifest:
        for parent in entry.destination.parents:
            if parent == PurePosixPath("."):
                continue
            directories.add(root.joinpath(*parent.parts))
    return directories


def create_project_root(root: Path) -> Path:
    """
    Create the project root directory.

    Missing parents of ``root`` are created as needed.

    Raises
    ------
    AlreadyExistsError
        If ``root`` already exists (as a directory or anything else).
    IOFailure
        If the directory cannot be created for another reason.
    """
    if root.exists() or root.is_symlink():
        raise AlreadyExistsError(root)
    try:
        root.mkdir(parents=True, exist_ok=False)
    except FileExistsError:
        raise AlreadyExistsError(root) from None
    except OSError as exc:
        raise IOFailure(root, exc, "create directory") from exc
    logger.debug("Created project root %s", root)
    return root


def create_directories(directories: Iterable[Path]) -> list[Path]:
    """
    Create directories, shallowest first.

    Already existing directories are not an error.

    Returns
    -------
    list[Path]
        The directories in the order they were processed.

    Raises
    ------
    IOFailure
        If a directory cannot be created.
    """
    ordered = sorted(directories, key=lambda p: (len(p.parts), p.as_posix()))
    for directory in ordered:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure(directory, exc, "create directory") from exc
        logger.debug("Created directory %s", directory)
    return ordered


__all__ = [
    "create_directories",
    "create_project_root",
    "plan_directories",
    "resolve_destination",
]
