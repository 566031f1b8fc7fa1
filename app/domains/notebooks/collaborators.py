import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Union

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.domains.identity.entities import IdentityRef
from app.domains.notebooks.exceptions import (
    AlreadyCollaborator, CannotRevokeOwner, NotACollaborator, UnknownUser
)

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    """Проверка синтаксиса email и приведение к нижнему регистру"""
    try:
        return str(_email_adapter.validate_python(value.strip())).lower()
    except ValidationError:
        raise ValueError(f"'{value}' is not a valid email address")


class Role(str, Enum):
    """Роль пользователя по отношению к блокноту"""
    OWNER = "owner"
    COLLABORATOR = "collaborator"
    NONE = "none"

    @property
    def can_read(self) -> bool:
        return self is not Role.NONE

    @property
    def can_write(self) -> bool:
        # Уровни доступа для соавторов пока не различаются
        return self is not Role.NONE


class InviteKind(str, Enum):
    ID = "id"
    EMAIL = "email"


@dataclass(frozen=True)
class InviteTarget:
    """Адресат приглашения: пользователь по id или по email"""
    kind: InviteKind
    value: Union[uuid.UUID, str]

    @property
    def is_email(self) -> bool:
        return self.kind is InviteKind.EMAIL

    @classmethod
    def by_id(cls, user_id: Union[uuid.UUID, str]) -> "InviteTarget":
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                raise ValueError(f"'{user_id}' is neither a user id nor an email address")
        return cls(kind=InviteKind.ID, value=user_id)

    @classmethod
    def by_email(cls, email: str) -> "InviteTarget":
        return cls(kind=InviteKind.EMAIL, value=normalize_email(email))

    @classmethod
    def parse(cls, identifier: Union[uuid.UUID, str]) -> "InviteTarget":
        """Разбор строки из формы приглашения: наличие '@' означает email"""
        if isinstance(identifier, uuid.UUID):
            return cls.by_id(identifier)

        identifier = (identifier or "").strip()
        if not identifier:
            raise ValueError("Collaborator identifier cannot be empty")

        if "@" in identifier:
            return cls.by_email(identifier)
        return cls.by_id(identifier)


class Collaborator:
    """Право доступа пользователя к блокноту"""

    def __init__(
        self,
        uuid: uuid.UUID,
        notebook_id: uuid.UUID,
        email: Optional[str],
        user_id: Optional[uuid.UUID] = None,
        username: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if user_id is None and not email:
            raise ValueError("Collaborator needs a user id or an email")

        self.uuid = uuid
        self.notebook_id = notebook_id
        self.email = email
        self.user_id = user_id
        self.username = username or (email.split("@")[0] if email else "")
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    @property
    def is_pending(self) -> bool:
        """Приглашение по email, аккаунт еще не найден"""
        return self.user_id is None

    def attach(self, identity: IdentityRef) -> None:
        """Привязка ожидающего приглашения к аккаунту"""
        self.user_id = identity.id
        self.username = identity.username
        if identity.email:
            self.email = identity.email.lower()
        self.updated_at = datetime.utcnow()

    @classmethod
    def create_collaborator(cls, notebook_id: uuid.UUID, identity: IdentityRef) -> "Collaborator":
        return cls(
            uuid=uuid.uuid4(),
            notebook_id=notebook_id,
            email=identity.email.lower() if identity.email else None,
            user_id=identity.id,
            username=identity.username
        )

    @classmethod
    def create_pending(cls, notebook_id: uuid.UUID, email: str) -> "Collaborator":
        return cls(uuid=uuid.uuid4(), notebook_id=notebook_id, email=email)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Collaborator):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Collaborator(notebook_id={self.notebook_id}, user_id={self.user_id}, email={self.email})"


class CollaboratorRegistry:
    """
    Список доступа блокнота.

    Владелец в список не входит. На один блокнот допускается не более одной
    записи на пользователя и не более одного ожидающего приглашения на email.
    """

    def __init__(
        self,
        notebook_id: uuid.UUID,
        owner_id: uuid.UUID,
        collaborators: Iterable[Collaborator] = ()
    ):
        self.notebook_id = notebook_id
        self.owner_id = owner_id
        self._rows: List[Collaborator] = []

        for collaborator in collaborators:
            if collaborator.user_id is not None and (
                collaborator.user_id == owner_id or self.find(collaborator.user_id) is not None
            ):
                raise AlreadyCollaborator(notebook_id, user_id=collaborator.user_id)
            if collaborator.is_pending and self.find_pending(collaborator.email) is not None:
                raise AlreadyCollaborator(notebook_id, email=collaborator.email)
            self._rows.append(collaborator)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Collaborator]:
        return iter(list(self._rows))

    def __contains__(self, user_id) -> bool:
        return self.find(user_id) is not None

    def find(self, user_id: uuid.UUID) -> Optional[Collaborator]:
        for row in self._rows:
            if row.user_id is not None and row.user_id == user_id:
                return row
        return None

    def find_pending(self, email: Optional[str]) -> Optional[Collaborator]:
        if not email:
            return None
        email = email.lower()
        for row in self._rows:
            if row.is_pending and row.email == email:
                return row
        return None

    def pending(self) -> List[Collaborator]:
        return [row for row in self._rows if row.is_pending]

    def role_of(self, user_id: Optional[uuid.UUID]) -> Role:
        if user_id is None:
            return Role.NONE
        if user_id == self.owner_id:
            return Role.OWNER
        if self.find(user_id) is not None:
            return Role.COLLABORATOR
        return Role.NONE

    def invite(self, target: InviteTarget, identity: Optional[IdentityRef]) -> Collaborator:
        """
        Приглашение соавтора.

        identity - результат разрешения адресата внешним провайдером
        идентичности (None, если аккаунт не найден). Приглашение по email
        без аккаунта создает ожидающую запись.
        """
        if identity is None:
            if not target.is_email:
                raise UnknownUser(target.value)

            if self.find_pending(target.value) is not None:
                raise AlreadyCollaborator(self.notebook_id, email=target.value)

            row = Collaborator.create_pending(self.notebook_id, target.value)
            self._rows.append(row)
            return row

        if identity.id == self.owner_id or self.find(identity.id) is not None:
            raise AlreadyCollaborator(self.notebook_id, user_id=identity.id)

        pending = self.find_pending(identity.email)
        if pending is not None:
            pending.attach(identity)
            return pending

        row = Collaborator.create_collaborator(self.notebook_id, identity)
        self._rows.append(row)
        return row

    def revoke(self, user_id: uuid.UUID) -> Collaborator:
        """Отзыв доступа у соавтора"""
        if user_id == self.owner_id:
            raise CannotRevokeOwner(self.notebook_id, self.owner_id)

        row = self.find(user_id)
        if row is None:
            raise NotACollaborator(self.notebook_id, user_id=user_id)

        self._rows.remove(row)
        return row

    def revoke_pending(self, email: str) -> Collaborator:
        """Отмена ожидающего приглашения"""
        row = self.find_pending(email)
        if row is None:
            raise NotACollaborator(self.notebook_id, email=email)

        self._rows.remove(row)
        return row

    def resolve_pending(self, identity: IdentityRef) -> bool:
        """Превращение ожидающего приглашения в полноценную запись соавтора"""
        pending = self.find_pending(identity.email)
        if pending is None:
            return False

        if identity.id == self.owner_id or self.find(identity.id) is not None:
            self._rows.remove(pending)
        else:
            pending.attach(identity)
        return True
