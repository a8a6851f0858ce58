"""
gohatch.store - Bundled Template Resources
==========================================

Templates ship inside the wheel as package data under
``gohatch/templates/go-tpl/``. A template is addressed by its POSIX path
relative to that directory, e.g. ``cmd/main.go.tmpl``.

The engine never reaches for the package data directly. It goes through the
:class:`TemplateStore` protocol so tests can hand it an
:class:`InMemoryTemplateStore` instead.

>>> store = InMemoryTemplateStore({"hello.txt.tmpl": b"Hello {{ .ProjectName }}"})
>>> store.resolve("hello.txt.tmpl")
b'Hello {{ .ProjectName }}'
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol

from gohatch.errors import TemplateNotFoundError
from gohatch.logging import get_logger


if TYPE_CHECKING:
    from importlib.resources.abc import Traversable


logger = get_logger("store")

TEMPLATE_PACKAGE = "gohatch.templates"
TEMPLATE_ROOT = "go-tpl"


@dataclass(frozen=True)
class TemplateResource:
    """A named, immutable template payload."""

    identifier: str
    content: bytes


class TemplateStore(Protocol):
    """Read-only access to template payloads by identifier."""

    def resolve(self, identifier: str) -> bytes:
        """Return the raw bytes of ``identifier`` or raise TemplateNotFoundError."""
        ...

    def identifiers(self) -> tuple[str, ...]:
        """All identifiers in the store, sorted."""
        ...


class InMemoryTemplateStore:
    """
    Template store backed by a mapping supplied by the caller.

    The mapping is copied on construction, so later changes to the
    caller's dict are not visible through the store.
    """

    def __init__(self, templates: Mapping[str, bytes]) -> None:
        self._templates: Mapping[str, bytes] = MappingProxyType(dict(templates))

    def resolve(self, identifier: str) -> bytes:
        try:
            return self._templates[identifier]
        except KeyError:
            raise TemplateNotFoundError(identifier) from None

    def identifiers(self) -> tuple[str, ...]:
        return tuple(sorted(self._templates))

    def resources(self) -> tuple[TemplateResource, ...]:
        return tuple(
            TemplateResource(identifier, self._templates[identifier])
            for identifier in self.identifiers()
        )

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._templates

    def __len__(self) -> int:
        return len(self._templates)


class PackageTemplateStore(InMemoryTemplateStore):
    """
    Template store reading the templates bundled with gohatch.

    Package data is read once, on first access, and kept in an immutable
    mapping for the life of the process.

    Parameters
    ----------
    package : str
        Package holding the template directory.
    root : str
        Directory inside ``package`` that identifiers are relative to.
    """

    def __init__(self, package: str = TEMPLATE_PACKAGE, root: str = TEMPLATE_ROOT) -> None:
        self.package = package
        self.root = root
        self._loaded = False
        self._lock = threading.Lock()
        super().__init__({})

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            base = resources.files(self.package).joinpath(self.root)
            collected: dict[str, bytes] = {}
            _collect(base, "", collected)
            self._templates = MappingProxyType(collected)
            self._loaded = True
            logger.debug(
                "Loaded %d templates from %s/%s", len(collected), self.package, self.root
            )

    def resolve(self, identifier: str) -> bytes:
        self._ensure_loaded()
        return super().resolve(identifier)

    def identifiers(self) -> tuple[str, ...]:
        self._ensure_loaded()
        return super().identifiers()

    def __contains__(self, identifier: object) -> bool:
        self._ensure_loaded()
        return super().__contains__(identifier)

    def __len__(self) -> int:
        self._ensure_loaded()
        return super().__len__()


def _collect(node: Traversable, prefix: str, into: dict[str, bytes]) -> None:
    """Recursively read every file below ``node`` into ``into``."""
    for child in node.iterdir():
        if child.name == "__pycache__":
            continue
        identifier = f"{prefix}{child.name}"
        if child.is_dir():
            _collect(child, f"{identifier}/", into)
        elif child.is_file():
            into[identifier] = child.read_bytes()


@lru_cache(maxsize=1)
def default_store() -> PackageTemplateStore:
    """The process-wide store of bundled templates."""
    return PackageTemplateStore()


__all__ = [
    "InMemoryTemplateStore",
    "PackageTemplateStore",
    "TemplateResource",
    "TemplateStore",
    "default_store",
]
