from app.db.models.user import User
from app.db.models.notebook import Notebook, Page, Collaborator

__all__ = [
    "User",
    "Notebook",
    "Page",
    "Collaborator"
]
