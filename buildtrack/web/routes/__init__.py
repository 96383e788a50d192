"""BuildTrack web route modules.

Each module exports a `router` (APIRouter instance) included by
buildtrack.web.app:

    from buildtrack.web.routes import engine
    app.include_router(engine.router)
"""

from buildtrack.web.routes import engine, projects

__all__ = [
    "engine",  # Stateless engine endpoints
    "projects",  # Persisted progress and schedules
]
