import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.security import get_password_hash, verify_password


@dataclass(frozen=True)
class IdentityRef:
    """Минимальное описание пользователя без загрузки полного профиля"""
    id: uuid.UUID
    username: str
    email: Optional[str] = None


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        uuid: uuid.UUID,
        email: str,
        username: str,
        password_hash: str,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.email = email
        self.username = username
        self.password_hash = password_hash
        self.is_active = is_active
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    def authenticate(self, password: str) -> bool:
        """Проверка пароля пользователя"""
        return verify_password(password[:72], self.password_hash)

    def to_ref(self) -> IdentityRef:
        return IdentityRef(id=self.uuid, username=self.username, email=self.email)

    @classmethod
    def create_user(cls, email: str, username: str, password: str) -> "User":
        """Создание нового пользователя с хешированием пароля"""
        # bcrypt имеет ограничение 72 байта
        return cls(
            uuid=uuid.uuid4(),
            email=email.lower(),
            username=username,
            password_hash=get_password_hash(password[:72])
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"User(uuid={self.uuid}, email={self.email}, username={self.username})"
