"""
gohatch.models - Pydantic Models for Generation Variables
=========================================================

This module defines the values substituted into templates during one
generation run. We use Pydantic for the same reasons throughout gohatch:

1. **Validation**: Bad option values are rejected with clear messages
2. **Immutability**: A frozen model cannot drift halfway through a run
3. **Serialization**: Defaults can be loaded from a TOML file

Architecture Notes
------------------
The context is deliberately flat. Templates address fields by their
CamelCase name (``{{ .ModulePath }}``), which maps one-to-one onto the
snake_case attributes below:

    VariableContext
    ├── project_name     ProjectName
    ├── module_path      ModulePath
    ├── author_name      AuthorName
    ├── author_email     AuthorEmail
    ├── description      Description
    ├── database_type    DatabaseType
    ├── redis_enabled    RedisEnabled
    ├── metrics_enabled  MetricsEnabled
    ├── pprof_enabled    PprofEnabled
    └── generated_at     GeneratedAt

Usage Example
-------------
>>> from gohatch.models import VariableContext
>>> ctx = VariableContext.for_project("myapp")
>>> ctx.module_path
'github.com/user/myapp'
>>> ctx.lookup("RedisEnabled")
True
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gohatch.errors import InvalidNameError


# =============================================================================
# Constants
# =============================================================================

PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
PROJECT_NAME_MAX_LENGTH = 50

DEFAULT_MODULE_PREFIX = "github.com/user/"
DEFAULT_DESCRIPTION = "A Go web application built with clean architecture"

# Template field name -> VariableContext attribute
TEMPLATE_FIELDS: dict[str, str] = {
    "ProjectName": "project_name",
    "ModulePath": "module_path",
    "AuthorName": "author_name",
    "AuthorEmail": "author_email",
    "Description": "description",
    "DatabaseType": "database_type",
    "RedisEnabled": "redis_enabled",
    "MetricsEnabled": "metrics_enabled",
    "PprofEnabled": "pprof_enabled",
    "GeneratedAt": "generated_at",
}

# Fields that may be used as a bare ``{{ if .Field }}`` condition
BOOLEAN_FIELDS = frozenset({"RedisEnabled", "MetricsEnabled", "PprofEnabled"})


def validate_project_name(name: str) -> str:
    """
    Check a project name against the naming rules.

    Names must start with a letter, contain only letters, digits, hyphens
    and underscores, and be at most 50 characters long.

    Parameters
    ----------
    name : str
        Candidate project name.

    Returns
    -------
    str
        The name, unchanged.

    Raises
    ------
    InvalidNameError
        If the name is empty, too long or contains disallowed characters.

    Examples
    --------
    >>> validate_project_name("my-app")
    'my-app'
    """
    if not name:
        raise InvalidNameError(name, "project name cannot be empty")
    if len(name) > PROJECT_NAME_MAX_LENGTH:
        raise InvalidNameError(
            name, f"project name too long (max {PROJECT_NAME_MAX_LENGTH} characters)"
        )
    if not PROJECT_NAME_PATTERN.fullmatch(name):
        raise InvalidNameError(
            name,
            "project name must start with a letter and contain only letters, "
            "numbers, hyphens and underscores",
        )
    return name


def check_email(v: str) -> str:
    """
    Basic email format validation; an empty string means "unknown".

    We use a simple regex rather than strict RFC 5322 compliance
    to avoid rejecting valid but unusual email addresses.
    """
    v = v.strip()
    if not v:
        return v
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(pattern, v):
        msg = f"Invalid email format: {v}"
        raise ValueError(msg)
    return v


def today() -> str:
    """Current date as ``YYYY-MM-DD``."""
    return datetime.now(UTC).strftime("%Y-%m-%d")


# =============================================================================
# Enumerations
# =============================================================================


class DatabaseType(str, Enum):
    """
    Database backends the generated service can be wired for.

    The value is what templates see through ``{{ .DatabaseType }}`` and
    compare against with ``eq``.
    """

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"

    @property
    def gorm_driver(self) -> str:
        """Import path of the GORM driver for this backend."""
        drivers = {
            DatabaseType.MYSQL: "gorm.io/driver/mysql",
            DatabaseType.POSTGRES: "gorm.io/driver/postgres",
            DatabaseType.SQLITE: "gorm.io/driver/sqlite",
        }
        return drivers[self]


# =============================================================================
# Sub-Models
# =============================================================================


class FeaturesConfig(BaseModel):
    """
    Optional infrastructure wired into the generated service.

    Attributes
    ----------
    redis : bool
        Redis cache client and configuration.
    metrics : bool
        Prometheus metrics registry and ``/metrics`` endpoint.
    pprof : bool
        ``net/http/pprof`` debug routes.

    Examples
    --------
    >>> FeaturesConfig(pprof=False).enabled_features
    ['redis', 'metrics']
    """

    model_config = ConfigDict(frozen=True)

    redis: bool = Field(default=True, description="Include Redis cache wiring")
    metrics: bool = Field(default=True, description="Include Prometheus metrics")
    pprof: bool = Field(default=True, description="Include pprof profiling routes")

    @property
    def enabled_features(self) -> list[str]:
        """Names of features set to True."""
        return [name for name, value in self.model_dump().items() if value is True]


class AuthorInfo(BaseModel):
    """
    Author identity written into generated files.

    Both fields may be empty; the CLI fills them from ``git config`` when
    the user does not supply them.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", max_length=100)
    email: str = Field(default="")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


# =============================================================================
# Variable Context
# =============================================================================


class VariableContext(BaseModel):
    """
    Immutable substitution values for one generation run.

    Attributes
    ----------
    project_name : str
        Name of the project and of its root directory.
    module_path : str
        Go module path. Defaults to ``github.com/user/<project_name>``.
    author_name, author_email : str
        Author identity, empty unless supplied.
    description : str
        One-line project description.
    database_type : DatabaseType
        Database backend, ``mysql`` by default.
    redis_enabled, metrics_enabled, pprof_enabled : bool
        Feature toggles, all enabled by default.
    generated_at : str
        Generation date (``YYYY-MM-DD``). Fix it to get reproducible output.

    Notes
    -----
    Construct through :meth:`for_project` when the name comes from user
    input: it raises :class:`~gohatch.errors.InvalidNameError` directly
    rather than a wrapped Pydantic ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    project_name: str = Field(
        description="Project name",
        min_length=1,
        max_length=PROJECT_NAME_MAX_LENGTH,
        pattern=PROJECT_NAME_PATTERN.pattern,
    )
    module_path: str = Field(default="", description="Go module path")
    author_name: str = Field(default="", description="Author name")
    author_email: str = Field(default="", description="Author email")
    description: str = Field(default=DEFAULT_DESCRIPTION, max_length=500)
    database_type: DatabaseType = Field(default=DatabaseType.MYSQL)
    redis_enabled: bool = True
    metrics_enabled: bool = True
    pprof_enabled: bool = True
    generated_at: str = Field(default_factory=today)

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def apply_module_default(cls, data: Any) -> Any:
        """Fill ``module_path`` from the project name when it is missing."""
        if isinstance(data, dict) and not data.get("module_path") and data.get("project_name"):
            data = {**data, "module_path": f"{DEFAULT_MODULE_PREFIX}{data['project_name']}"}
        return data

    @field_validator("module_path", "description", "author_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("author_email")
    @classmethod
    def validate_author_email(cls, v: str) -> str:
        return check_email(v)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def for_project(cls, project_name: str, **overrides: Any) -> VariableContext:
        """
        Build a context for ``project_name``, validating the name first.

        Parameters
        ----------
        project_name : str
            Name supplied by the user.
        **overrides
            Any other recognized field. ``None`` values are ignored so callers
            can pass unset CLI options straight through.

        Raises
        ------
        InvalidNameError
            If ``project_name`` breaks the naming rules.
        pydantic.ValidationError
            If another field has an invalid value or is not recognized.
        """
        validate_project_name(project_name)
        values = {key: value for key, value in overrides.items() if value is not None}
        return cls(project_name=project_name, **values)

    @classmethod
    def from_toml(cls, path: Path, project_name: str, **overrides: Any) -> VariableContext:
        """
        Build a context from defaults stored in a TOML file.

        The file holds the same keys as this model at top level (or under a
        ``[gohatch]`` table). ``project_name`` and non-None ``overrides``
        take precedence over file values.

        Raises
        ------
        FileNotFoundError
            If the file doesn't exist.
        tomli.TOMLDecodeError
            If the file is not valid TOML.
        """
        import tomli

        with open(path, "rb") as f:
            data = tomli.load(f)

        data = data.get("gohatch", data)
        data.pop("project_name", None)
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls.for_project(project_name, **data)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def features(self) -> FeaturesConfig:
        """The feature toggles as a :class:`FeaturesConfig`."""
        return FeaturesConfig(
            redis=self.redis_enabled,
            metrics=self.metrics_enabled,
            pprof=self.pprof_enabled,
        )

    @property
    def author(self) -> AuthorInfo:
        return AuthorInfo(name=self.author_name, email=self.author_email)

    def lookup(self, field: str) -> str | bool:
        """
        Value of a template field by its CamelCase name.

        Raises
        ------
        KeyError
            If ``field`` is not a recognized template field.
        """
        value = getattr(self, TEMPLATE_FIELDS[field])
        if isinstance(value, Enum):
            return value.value
        return value


__all__ = [
    "BOOLEAN_FIELDS",
    "DEFAULT_DESCRIPTION",
    "DEFAULT_MODULE_PREFIX",
    "PROJECT_NAME_MAX_LENGTH",
    "TEMPLATE_FIELDS",
    "AuthorInfo",
    "DatabaseType",
    "FeaturesConfig",
    "VariableContext",
    "validate_project_name",
]
