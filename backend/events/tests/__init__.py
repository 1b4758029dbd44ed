# events/tests/__init__.py
"""
Events App Test Suite
=====================

This package contains unit and integration tests for the events application.

Modules:
--------
- test_engine: Unit tests for the scoring math, recency memory, local ranker and pre-filter
- test_parser: Unit tests for JSON extraction and validation of model replies
- test_orchestration: Integration tests for the hybrid pipeline and its local fallback
- test_api: REST endpoints and the Event persistence collaborator

Running Tests:
--------------
    # Run all event tests
    pytest backend/events

    # Run specific test module
    pytest backend/events/tests/test_engine.py

    # Or through Django's runner
    python manage.py test events -v 2
"""
