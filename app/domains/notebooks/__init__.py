from app.domains.notebooks.exceptions import (
    WorkspaceError, NotebookNotFound, PageNotFound, InvalidParent, CycleDetected,
    EmptyNotebook, UnknownUser, AlreadyCollaborator, NotACollaborator,
    CannotRevokeOwner, Forbidden, Conflict, InvalidTransition
)
from app.domains.notebooks.page_tree import Page, PageTree
from app.domains.notebooks.collaborators import (
    Collaborator, CollaboratorRegistry, InviteTarget, InviteKind, Role
)
from app.domains.notebooks.entities import Notebook
from app.domains.notebooks.navigator import (
    NavigationKind, NavigationResult, NavigationState, WorkspaceSession, navigate
)

__all__ = [
    "WorkspaceError", "NotebookNotFound", "PageNotFound", "InvalidParent", "CycleDetected",
    "EmptyNotebook", "UnknownUser", "AlreadyCollaborator", "NotACollaborator",
    "CannotRevokeOwner", "Forbidden", "Conflict", "InvalidTransition",
    "Page", "PageTree",
    "Collaborator", "CollaboratorRegistry", "InviteTarget", "InviteKind", "Role",
    "Notebook",
    "NavigationKind", "NavigationResult", "NavigationState", "WorkspaceSession", "navigate"
]
