"""
gohatch.manifest - Template to Output Mappings
==============================================

A manifest is the ordered list of (template, destination) pairs that
defines the shape of one generated project. Entries are processed in the
order they are declared here; that order is part of the contract and is
what progress reporting follows.

Some entries only apply when a feature flag is on. :meth:`Manifest.select`
drops the entries whose flag is off, giving the manifest for one project
variant.

File naming conventions:

- Templates end with ``.tmpl``; the output drops the suffix
- ``.go.mod.tmpl`` becomes ``go.mod`` (a real ``go.mod`` inside the
  template tree would mark it as a separate Go module)
- ``gitignore.tmpl`` becomes ``.gitignore``
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from gohatch.models import BOOLEAN_FIELDS, TEMPLATE_FIELDS


if TYPE_CHECKING:
    from gohatch.models import VariableContext


TEMPLATE_SUFFIX = ".tmpl"

# Output names that differ from the template name minus its suffix
RENAMED_OUTPUTS: dict[str, str] = {
    ".go.mod": "go.mod",
    "gitignore": ".gitignore",
}

# VariableContext attributes a manifest entry may be gated on
FEATURE_FLAGS = frozenset(TEMPLATE_FIELDS[name] for name in BOOLEAN_FIELDS)


def output_path(identifier: str) -> PurePosixPath:
    """
    Destination path for a template identifier.

    Examples
    --------
    >>> output_path("cmd/main.go.tmpl")
    PurePosixPath('cmd/main.go')
    >>> output_path(".go.mod.tmpl")
    PurePosixPath('go.mod')
    """
    path = PurePosixPath(identifier)
    name = path.name
    if name.endswith(TEMPLATE_SUFFIX):
        name = name[: -len(TEMPLATE_SUFFIX)]
    return path.with_name(RENAMED_OUTPUTS.get(name, name))


@dataclass(frozen=True)
class ManifestEntry:
    """
    One template and where its output goes.

    Attributes
    ----------
    template : str
        Template identifier in the store.
    destination : PurePosixPath
        Output path relative to the project root. Must be relative and may
        not contain ``..``.
    requires : str | None
        Name of a feature flag on the context (``redis_enabled`` ...) that
        must be true for this entry to be generated.

    Raises
    ------
    ValueError
        On construction, if the destination is absolute, empty or escapes
        the project root, or ``requires`` is not a feature flag.
    """

    template: str
    destination: PurePosixPath
    requires: str | None = None

    def __post_init__(self) -> None:
        destination = PurePosixPath(self.destination)
        object.__setattr__(self, "destination", destination)

        if destination.is_absolute() or "\\" in str(destination):
            raise ValueError(f"Destination must be a relative POSIX path: {destination}")
        if not destination.parts or str(destination) == ".":
            raise ValueError(f"Destination for {self.template!r} is empty")
        if ".." in destination.parts:
            raise ValueError(f"Destination escapes the project root: {destination}")
        if self.requires is not None and self.requires not in FEATURE_FLAGS:
            raise ValueError(f"Unknown feature flag: {self.requires}")

    @classmethod
    def for_template(cls, template: str, requires: str | None = None) -> ManifestEntry:
        """Entry whose destination follows the file naming conventions."""
        return cls(template, output_path(template), requires)

    def applies_to(self, context: VariableContext) -> bool:
        return self.requires is None or bool(getattr(context, self.requires))


class Manifest:
    """
    Ordered, immutable sequence of :class:`ManifestEntry`.

    Raises
    ------
    ValueError
        If two entries share a destination, or a destination is also the
        parent directory of another destination.
    """

    def __init__(self, entries: Iterable[ManifestEntry]) -> None:
        self._entries = tuple(entries)

        seen: set[PurePosixPath] = set()
        for entry in self._entries:
            if entry.destination in seen:
                raise ValueError(f"Duplicate destination in manifest: {entry.destination}")
            seen.add(entry.destination)

        for entry in self._entries:
            for parent in entry.destination.parents:
                if parent in seen:
                    raise ValueError(
                        f"Destination {parent} is also a directory of {entry.destination}"
                    )

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> ManifestEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"Manifest({len(self._entries)} entries)"

    @property
    def entries(self) -> tuple[ManifestEntry, ...]:
        return self._entries

    @property
    def destinations(self) -> tuple[PurePosixPath, ...]:
        return tuple(entry.destination for entry in self._entries)

    @property
    def templates(self) -> tuple[str, ...]:
        return tuple(entry.template for entry in self._entries)

    def select(self, context: VariableContext) -> Manifest:
        """The entries that apply to ``context``, in declaration order."""
        return Manifest(entry for entry in self._entries if entry.applies_to(context))


# =============================================================================
# Bundled Manifest
# =============================================================================

DEFAULT_MANIFEST = Manifest(
    [
        # Project files
        ManifestEntry.for_template(".go.mod.tmpl"),
        ManifestEntry.for_template("gitignore.tmpl"),
        ManifestEntry.for_template("README.md.tmpl"),
        ManifestEntry.for_template("Dockerfile.tmpl"),
        ManifestEntry.for_template("config/conf.yml.tmpl"),
        # Entry point
        ManifestEntry.for_template("cmd/main.go.tmpl"),
        # Infrastructure
        ManifestEntry.for_template("infra/init.go.tmpl"),
        ManifestEntry.for_template("infra/config/config.go.tmpl"),
        ManifestEntry.for_template("infra/logger/logger.go.tmpl"),
        ManifestEntry.for_template("infra/dbs/db.go.tmpl"),
        ManifestEntry.for_template("infra/cache/redis.go.tmpl", requires="redis_enabled"),
        ManifestEntry.for_template("infra/monitor/monitor.go.tmpl", requires="metrics_enabled"),
        ManifestEntry.for_template("infra/jwt/jwt.go.tmpl"),
        # Business logic
        ManifestEntry.for_template("logic/init.go.tmpl"),
        ManifestEntry.for_template("logic/wire.go.tmpl"),
        ManifestEntry.for_template("logic/shared/consts.go.tmpl"),
        ManifestEntry.for_template("logic/shared/errors.go.tmpl"),
        ManifestEntry.for_template("logic/user/model.go.tmpl"),
        ManifestEntry.for_template("logic/user/service.go.tmpl"),
        ManifestEntry.for_template("logic/auth/service.go.tmpl"),
        # HTTP layer
        ManifestEntry.for_template("web/router.go.tmpl"),
        ManifestEntry.for_template("web/base/render.go.tmpl"),
        ManifestEntry.for_template("web/middleware/auth.go.tmpl"),
        ManifestEntry.for_template("web/rest/auth/handler.go.tmpl"),
        ManifestEntry.for_template("web/rest/user/handler.go.tmpl"),
        ManifestEntry.for_template("web/types/types.go.tmpl"),
    ]
)


def select_manifest(
    context: VariableContext,
    manifest: Manifest = DEFAULT_MANIFEST,
) -> Manifest:
    """Manifest for the project variant described by ``context``."""
    return manifest.select(context)


__all__ = [
    "DEFAULT_MANIFEST",
    "FEATURE_FLAGS",
    "Manifest",
    "ManifestEntry",
    "output_path",
    "select_manifest",
]
