"""
gohatch.errors - Error Taxonomy
===============================

Every failure the engine can report is a subclass of :class:`GohatchError`.
The CLI catches that base class, asks :func:`classify_error` which bucket the
failure falls into, and prints a matching hint.

    GohatchError
    ├── InvalidNameError       (also ValueError)
    ├── AlreadyExistsError     (also FileExistsError)
    ├── TemplateNotFoundError  (also LookupError)
    ├── SubstitutionError
    └── IOFailure

``InvalidNameError`` and ``AlreadyExistsError`` are raised before anything
is written to disk. The others can surface after some files already exist.
"""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path


class ErrorCategory(str, Enum):
    """
    Coarse cause of a failed run, used to pick a user-facing hint.

    Attributes
    ----------
    PERMISSION : str
        The process may not create or write a path.
    TEMPLATE : str
        A bundled template is missing or malformed (a gohatch bug).
    DISK_SPACE : str
        The filesystem ran out of space or quota.
    OTHER : str
        Anything else.
    """

    PERMISSION = "permission"
    TEMPLATE = "template"
    DISK_SPACE = "disk_space"
    OTHER = "other"

    @property
    def hint(self) -> str:
        """Suggestion shown to the user for this category."""
        hints = {
            ErrorCategory.PERMISSION: (
                "Try running with different permissions or choose a different directory."
            ),
            ErrorCategory.TEMPLATE: (
                "This might be a bug in a bundled template. Please report this issue."
            ),
            ErrorCategory.DISK_SPACE: "Check available disk space.",
            ErrorCategory.OTHER: "See the error details above.",
        }
        return hints[self]


_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}
_DISK_SPACE_ERRNOS = {errno.ENOSPC, errno.EDQUOT}


def category_for_os_error(exc: OSError) -> ErrorCategory:
    """Map an ``OSError`` to an :class:`ErrorCategory` using its errno."""
    if isinstance(exc, PermissionError) or exc.errno in _PERMISSION_ERRNOS:
        return ErrorCategory.PERMISSION
    if exc.errno in _DISK_SPACE_ERRNOS:
        return ErrorCategory.DISK_SPACE
    return ErrorCategory.OTHER


# =============================================================================
# Exceptions
# =============================================================================


class GohatchError(Exception):
    """Base class for all errors raised by the generation engine."""

    category: ErrorCategory = ErrorCategory.OTHER


class InvalidNameError(GohatchError, ValueError):
    """The project name does not satisfy the naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid project name '{name}': {reason}")
        self.name = name
        self.reason = reason


class AlreadyExistsError(GohatchError, FileExistsError):
    """The project root directory exists before generation started."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Directory '{path}' already exists. "
            "Use a different name or remove the existing directory."
        )
        self.path = path


class TemplateNotFoundError(GohatchError, LookupError):
    """A template identifier is not present in the template store."""

    category = ErrorCategory.TEMPLATE

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Template not found: {identifier}")
        self.identifier = identifier


class SubstitutionError(GohatchError):
    """
    A template could not be rendered.

    Raised for placeholders naming an unknown field as well as for
    structurally malformed templates.

    Attributes
    ----------
    template : str | None
        Identifier of the failing template, when known.
    line : int | None
        1-based line of the offending action, when known.
    """

    category = ErrorCategory.TEMPLATE

    def __init__(
        self,
        message: str,
        *,
        template: str | None = None,
        line: int | None = None,
    ) -> None:
        self.message = message
        self.template = template
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        location = ""
        if self.template is not None:
            location = self.template
            if self.line is not None:
                location += f":{self.line}"
            location += ": "
        elif self.line is not None:
            location = f"line {self.line}: "
        return f"{location}{self.message}"

    def with_template(self, template: str) -> SubstitutionError:
        """Return a copy of this error annotated with a template identifier."""
        return SubstitutionError(self.message, template=template, line=self.line)


class IOFailure(GohatchError):
    """
    A filesystem operation failed.

    Attributes
    ----------
    path : Path
        The path being created or written.
    action : str
        What was being done to ``path``, e.g. ``"write"`` or
        ``"create directory"``.
    kind : ErrorCategory
        PERMISSION, DISK_SPACE or OTHER, derived from the underlying errno.
    """

    def __init__(self, path: Path, exc: OSError, action: str = "write") -> None:
        reason = exc.strerror or str(exc)
        super().__init__(f"Failed to {action} '{path}': {reason}")
        self.path = path
        self.action = action
        self.kind = category_for_os_error(exc)
        self.category = self.kind


def classify_error(exc: BaseException) -> ErrorCategory:
    """
    Classify any exception into an :class:`ErrorCategory`.

    Parameters
    ----------
    exc : BaseException
        The failure to classify.

    Returns
    -------
    ErrorCategory
        The category whose hint the CLI should print.

    Examples
    --------
    >>> classify_error(PermissionError(13, "Permission denied"))
    <ErrorCategory.PERMISSION: 'permission'>
    """
    if isinstance(exc, GohatchError):
        return exc.category
    if isinstance(exc, OSError):
        return category_for_os_error(exc)
    return ErrorCategory.OTHER


__all__ = [
    "AlreadyExistsError",
    "ErrorCategory",
    "GohatchError",
    "IOFailure",
    "InvalidNameError",
    "SubstitutionError",
    "TemplateNotFoundError",
    "category_for_os_error",
    "classify_error",
]
