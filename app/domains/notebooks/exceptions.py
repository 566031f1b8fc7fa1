import uuid
from typing import Optional


class WorkspaceError(Exception):
    """Базовая ошибка модели рабочего пространства"""

    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "context": {key: str(value) if value is not None else None for key, value in self.context.items()},
        }


class NotebookNotFound(WorkspaceError):
    def __init__(self, notebook_id: uuid.UUID):
        super().__init__(f"Notebook {notebook_id} not found", notebook_id=notebook_id)
        self.notebook_id = notebook_id


class PageNotFound(WorkspaceError):
    def __init__(self, page_id: uuid.UUID, notebook_id: Optional[uuid.UUID] = None):
        super().__init__(f"Page {page_id} not found", page_id=page_id, notebook_id=notebook_id)
        self.page_id = page_id
        self.notebook_id = notebook_id


class InvalidParent(WorkspaceError):
    def __init__(self, parent_id: uuid.UUID, notebook_id: Optional[uuid.UUID] = None, page_id: Optional[uuid.UUID] = None):
        super().__init__(
            f"Parent page {parent_id} does not exist in this notebook",
            parent_id=parent_id,
            notebook_id=notebook_id,
            page_id=page_id,
        )
        self.parent_id = parent_id
        self.notebook_id = notebook_id
        self.page_id = page_id


class CycleDetected(WorkspaceError):
    def __init__(self, page_id: uuid.UUID, parent_id: uuid.UUID):
        super().__init__(
            f"Page {page_id} cannot be placed under {parent_id}: it would become its own ancestor",
            page_id=page_id,
            parent_id=parent_id,
        )
        self.page_id = page_id
        self.parent_id = parent_id


class EmptyNotebook(WorkspaceError):
    def __init__(self, notebook_id: Optional[uuid.UUID] = None):
        super().__init__("Notebook has no pages", notebook_id=notebook_id)
        self.notebook_id = notebook_id


class UnknownUser(WorkspaceError):
    def __init__(self, user_id: uuid.UUID):
        super().__init__(f"User {user_id} does not exist", user_id=user_id)
        self.user_id = user_id


class AlreadyCollaborator(WorkspaceError):
    def __init__(self, notebook_id: uuid.UUID, user_id: Optional[uuid.UUID] = None, email: Optional[str] = None):
        who = user_id if user_id is not None else email
        super().__init__(
            f"{who} already has access to notebook {notebook_id}",
            notebook_id=notebook_id,
            user_id=user_id,
            email=email,
        )
        self.notebook_id = notebook_id
        self.user_id = user_id
        self.email = email


class NotACollaborator(WorkspaceError):
    def __init__(self, notebook_id: uuid.UUID, user_id: Optional[uuid.UUID] = None, email: Optional[str] = None):
        who = user_id if user_id is not None else email
        super().__init__(
            f"{who} is not a collaborator of notebook {notebook_id}",
            notebook_id=notebook_id,
            user_id=user_id,
            email=email,
        )
        self.notebook_id = notebook_id
        self.user_id = user_id
        self.email = email


class CannotRevokeOwner(WorkspaceError):
    def __init__(self, notebook_id: uuid.UUID, owner_id: uuid.UUID):
        super().__init__(
            f"The owner of notebook {notebook_id} cannot be removed",
            notebook_id=notebook_id,
            owner_id=owner_id,
        )
        self.notebook_id = notebook_id
        self.owner_id = owner_id


class Forbidden(WorkspaceError):
    def __init__(self, notebook_id: uuid.UUID, user_id: uuid.UUID, action: str):
        super().__init__(
            f"User {user_id} is not allowed to {action} notebook {notebook_id}",
            notebook_id=notebook_id,
            user_id=user_id,
            action=action,
        )
        self.notebook_id = notebook_id
        self.user_id = user_id
        self.action = action


class Conflict(WorkspaceError):
    """Коммит на устаревшей версии агрегата; клиент должен перечитать блокнот и повторить"""

    retryable = True

    def __init__(self, notebook_id: uuid.UUID, expected_version: int):
        super().__init__(
            f"Notebook {notebook_id} was modified concurrently (expected version {expected_version})",
            notebook_id=notebook_id,
            expected_version=expected_version,
        )
        self.notebook_id = notebook_id
        self.expected_version = expected_version


class InvalidTransition(WorkspaceError):
    def __init__(self, state: str, event: str):
        super().__init__(f"Cannot handle '{event}' in state '{state}'", state=state, event=event)
        self.state = state
        self.event = event
