"""
pytest configuration and shared fixtures for gohatch tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
temp_dir : Path
    A temporary target directory that is cleaned up after each test.

context : VariableContext
    A context for project "myapp" with a fixed generation date.

memory_store : InMemoryTemplateStore
    A small in-memory template set for engine tests.
"""

from pathlib import Path

import pytest

from gohatch.manifest import Manifest, ManifestEntry
from gohatch.models import VariableContext
from gohatch.store import InMemoryTemplateStore


FIXED_DATE = "2026-01-01"


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """
    Create a temporary target directory for generation tests.

    Returns
    -------
    Path
        An empty directory.
    """
    target = tmp_path / "target"
    target.mkdir()
    return target


@pytest.fixture
def context() -> VariableContext:
    """Context for 'myapp' with defaults and a fixed date."""
    return VariableContext.for_project(
        "myapp",
        author_name="Test Author",
        author_email="test@example.com",
        generated_at=FIXED_DATE,
    )


@pytest.fixture
def memory_store() -> InMemoryTemplateStore:
    """
    Provide a small template set covering substitution and gating.

    Returns
    -------
    InMemoryTemplateStore
        Templates keyed by identifier.
    """
    return InMemoryTemplateStore(
        {
            ".go.mod.tmpl": b"module {{ .ModulePath }}\n",
            "main.go.tmpl": b"package main // {{ .ProjectName }}\n",
            "infra/cache.go.tmpl": b"package infra\n{{ if .RedisEnabled }}// redis\n{{ end }}",
            "web/rest/handler.go.tmpl": b"package rest // {{ .DatabaseType }}\n",
            "broken.go.tmpl": b"package broken // {{ .Nope }}\n",
        }
    )


@pytest.fixture
def memory_manifest() -> Manifest:
    """Manifest over the valid templates of ``memory_store``."""
    return Manifest(
        [
            ManifestEntry.for_template(".go.mod.tmpl"),
            ManifestEntry.for_template("main.go.tmpl"),
            ManifestEntry.for_template("infra/cache.go.tmpl", requires="redis_enabled"),
            ManifestEntry.for_template("web/rest/handler.go.tmpl"),
        ]
    )


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that generate the full bundled project"
    )
