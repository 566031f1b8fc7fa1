from app.api.http.health import router as health_router
from app.api.http.auth import router as auth_router
from app.api.http.notebooks import router as notebooks_router
from app.api.http.pages import router as pages_router
from app.api.http.collaborators import router as collaborators_router

__all__ = [
    "health_router",
    "auth_router",
    "notebooks_router",
    "pages_router",
    "collaborators_router"
]
