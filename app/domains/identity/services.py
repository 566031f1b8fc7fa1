from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from app.db.repositories.user_repository import UserRepository
from app.domains.identity.entities import User, IdentityRef
from app.domains.identity.schemas import UserCreate, UserLogin
from app.core.security import create_access_token, verify_token

logger = logging.getLogger(__name__)


class IdentityService:
    """Сервис для работы с идентификацией и аутентификацией пользователей"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)
    
    async def register_user(self, user_data: UserCreate) -> User:
        """Регистрация нового пользователя"""
        # Проверка существования email и username
        if await self.user_repository.email_exists(user_data.email):
            raise ValueError("Email already registered")
        
        if await self.user_repository.username_exists(user_data.username):
            raise ValueError("Username already taken")
        
        user = User.create_user(
            email=user_data.email,
            username=user_data.username,
            password=user_data.password
        )
        
        created_user = await self.user_repository.create(user)
        logger.info(f"Registered user {created_user.uuid}")
        return created_user
    
    async def authenticate_user(self, login_data: UserLogin) -> Optional[User]:
        """Аутентификация пользователя"""
        user = await self.user_repository.get_by_email(login_data.email)
        
        if not user or not user.is_active:
            return None
        
        if not user.authenticate(login_data.password):
            return None
        
        return user
    
    async def login_user(self, login_data: UserLogin) -> Optional[str]:
        """Вход пользователя и создание JWT токена"""
        user = await self.authenticate_user(login_data)
        
        if not user:
            return None
        
        token_data = {
            "sub": str(user.uuid),
            "username": user.username,
            "email": user.email
        }
        
        return create_access_token(data=token_data)
    
    async def get_user_by_uuid(self, user_uuid: uuid.UUID) -> Optional[User]:
        """Получение пользователя по UUID"""
        return await self.user_repository.get_by_uuid(user_uuid)
    
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Получение пользователя по email"""
        return await self.user_repository.get_by_email(email)
    
    async def resolve_user(self, user_uuid: uuid.UUID) -> Optional[IdentityRef]:
        """Разрешение id пользователя в IdentityRef"""
        user = await self.user_repository.get_by_uuid(user_uuid)
        return user.to_ref() if user else None
    
    async def resolve_email(self, email: str) -> Optional[IdentityRef]:
        """Разрешение email в IdentityRef (None, если аккаунта нет)"""
        user = await self.user_repository.get_by_email(email)
        return user.to_ref() if user else None
    
    async def get_current_user_from_token(self, token: str) -> Optional[User]:
        """Получение текущего пользователя из JWT токена"""
        payload = verify_token(token)
        if not payload or not payload.get("sub"):
            return None
        
        try:
            user_uuid = uuid.UUID(payload["sub"])
        except ValueError:
            return None
        
        user = await self.user_repository.get_by_uuid(user_uuid)
        
        if user is None or not user.is_active:
            return None
        
        return user
