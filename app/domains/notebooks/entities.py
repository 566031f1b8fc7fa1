import uuid
from datetime import datetime
from typing import Iterable, Optional

from app.domains.notebooks.collaborators import Collaborator, CollaboratorRegistry, Role
from app.domains.notebooks.page_tree import Page, PageTree


class Notebook:
    """Агрегат блокнота: реквизиты, дерево страниц и список соавторов"""

    def __init__(
        self,
        uuid: uuid.UUID,
        title: str,
        owner_id: uuid.UUID,
        description: str = "",
        pages: Iterable[Page] = (),
        collaborators: Iterable[Collaborator] = (),
        version: int = 1,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.title = title
        self.description = description or ""
        self.owner_id = owner_id
        self.version = version
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

        self.pages = PageTree(uuid, pages)
        self.collaborators = CollaboratorRegistry(uuid, owner_id, collaborators)

    def update_details(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        """Обновление заголовка и описания"""
        if title:
            self.title = title
        if description is not None:
            self.description = description
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    def role_of(self, user_id: Optional[uuid.UUID]) -> Role:
        return self.collaborators.role_of(user_id)

    def can_access(self, user_id: uuid.UUID) -> bool:
        return self.role_of(user_id).can_read

    def can_edit(self, user_id: uuid.UUID) -> bool:
        return self.role_of(user_id).can_write

    @classmethod
    def create_notebook(cls, title: str, owner_id: uuid.UUID, description: str = "") -> "Notebook":
        """Создание нового пустого блокнота"""
        return cls(
            uuid=uuid.uuid4(),
            title=title,
            owner_id=owner_id,
            description=description
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Notebook):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"Notebook(uuid={self.uuid}, title={self.title}, version={self.version})"
