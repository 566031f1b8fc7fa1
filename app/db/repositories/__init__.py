from app.db.repositories.user_repository import UserRepository
from app.db.repositories.notebook_repository import NotebookRepository

__all__ = [
    "UserRepository",
    "NotebookRepository"
]
