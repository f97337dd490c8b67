"""
Test Suite for the Skeleton API

Test Organization:
- conftest.py: Shared fixtures (test database, clients, tokens, sample data)
- test_examples.py: Tests for /api/v1/examples endpoints
- test_auth.py: Tests for token refresh and bearer authentication
- test_health.py: Tests for /health, /ready and /live
- test_pipeline.py: Tests for the middleware stages
- test_store.py, test_migration.py: Persistence and schema bootstrap
- test_security.py, test_rate_limiter.py, test_events.py, test_alerts.py:
  Service unit tests

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=skeleton_api --cov-report=html

    # Run specific file
    pytest tests/test_examples.py

    # Run with verbose output
    pytest -v
"""
