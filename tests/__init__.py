"""
gohatch test suite
==================

Test Modules
------------
- test_models.py: Variable context and name validation
- test_errors.py: Error taxonomy and classification
- test_store.py: Template stores
- test_renderer.py: Template action language
- test_manifest.py: Manifest construction and variant selection
- test_planner.py: Directory planning and creation
- test_generator.py: Materialization runs, end to end
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip full-project generation
    pytest -m "not integration"

    # Run specific module
    pytest tests/test_renderer.py
"""
