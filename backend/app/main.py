"""FastAPI application."""

from fastapi import FastAPI

from backend.app.api.routes.budget import router as budget_router
from backend.app.api.routes.collaborators import router as collaborators_router
from backend.app.api.routes.events import router as events_router
from backend.app.api.routes.expenses import router as expenses_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.ideas import router as ideas_router
from backend.app.api.routes.messages import router as messages_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.polls import router as polls_router
from backend.app.api.routes.trips import router as trips_router
from backend.app.errors import register_exception_handlers
from backend.app.utils.logging import configure_logging

configure_logging()

app = FastAPI(title="Trip Planner API", version="0.1.0")

register_exception_handlers(app)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router)
app.include_router(events_router)
app.include_router(budget_router)
app.include_router(expenses_router)
app.include_router(collaborators_router)
app.include_router(messages_router)
app.include_router(ideas_router)
app.include_router(polls_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Trip Planner API", "version": "0.1.0"}
