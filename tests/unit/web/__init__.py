"""Unit tests for BuildTrack web route modules.

One test file per route module:
    tests/unit/web/
    ├── test_routes_engine.py     # Stateless engine routes
    └── test_routes_projects.py   # Persisted progress and schedules

Testing pattern:
    - Use FastAPI's TestClient against buildtrack.web.app (error handlers included)
    - Mock get_session and the service for persisting routes
"""
