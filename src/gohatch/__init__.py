"""
gohatch - Go Web Project Scaffolding
====================================

A CLI tool and library that materializes a Go web service skeleton (gin,
gorm, viper, zerolog, JWT auth) from bundled templates, with optional Redis,
Prometheus and pprof wiring.

Quick Start
-----------
```bash
gohatch new myapp
gohatch new myapp --module github.com/acme/myapp --database postgres --no-redis
```

Example
-------
>>> from gohatch import VariableContext, create_project
>>> context = VariableContext.for_project("myapp", pprof_enabled=False)
>>> result = create_project(context)
>>> result.success
True

Architecture
------------
- ``models``: Pydantic variable context and name validation
- ``store``: Read-only access to the bundled templates
- ``renderer``: The template action language
- ``manifest``: Ordered template -> destination mappings
- ``planner``: Directory planning and project root creation
- ``generator``: The run state machine and ``create_project``
- ``cli``: Typer command line interface
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from gohatch.errors import (
    AlreadyExistsError,
    GohatchError,
    InvalidNameError,
    IOFailure,
    SubstitutionError,
    TemplateNotFoundError,
)
from gohatch.generator import GenerationResult, ProgressEvent, create_project
from gohatch.manifest import DEFAULT_MANIFEST, Manifest, ManifestEntry
from gohatch.models import DatabaseType, VariableContext


__all__ = [
    "DEFAULT_MANIFEST",
    "AlreadyExistsError",
    "DatabaseType",
    "GenerationResult",
    "GohatchError",
    "IOFailure",
    "InvalidNameError",
    "Manifest",
    "ManifestEntry",
    "ProgressEvent",
    "SubstitutionError",
    "TemplateNotFoundError",
    "VariableContext",
    "__version__",
    "create_project",
]
