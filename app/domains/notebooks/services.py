from contextlib import contextmanager
from typing import Optional, List, Union
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from app.db.repositories.notebook_repository import NotebookRepository
from app.domains.identity.entities import IdentityRef
from app.domains.identity.services import IdentityService
from app.domains.notebooks.collaborators import Collaborator, InviteTarget, Role
from app.domains.notebooks.entities import Notebook
from app.domains.notebooks.exceptions import (
    CannotRevokeOwner, Conflict, Forbidden, NotebookNotFound, WorkspaceError
)
from app.domains.notebooks.navigator import NavigationResult, navigate
from app.domains.notebooks.page_tree import Page
from app.domains.notebooks.schemas import (
    NotebookCreate, NotebookUpdate, PageCreate, PageMove
)

logger = logging.getLogger(__name__)

RESOLVE_ATTEMPTS = 3


class LoggingNotifier:
    """Уведомления об исходе операций; решения на их основе не принимаются"""

    def success(self, message: str) -> None:
        logger.info(message)

    def failure(self, message: str) -> None:
        logger.warning(message)


class NotebookService:
    """
    Сервис блокнотов.

    Каждая операция читает агрегат целиком, один раз вычисляет роль
    вызывающего, применяет изменение в памяти и сохраняет агрегат с
    проверкой версии. Ошибка на любом шаге до сохранения не оставляет
    следов в базе.
    """

    def __init__(self, session: AsyncSession, notifier=None):
        self.session = session
        self.notebook_repository = NotebookRepository(session)
        self.identity_service = IdentityService(session)
        self.notifier = notifier or LoggingNotifier()

    async def get_notebook(self, notebook_uuid: uuid.UUID, user_id: uuid.UUID) -> Notebook:
        """Получение блокнота, доступного пользователю"""
        notebook = await self._load(notebook_uuid)
        if not notebook.role_of(user_id).can_read:
            raise Forbidden(notebook_uuid, user_id, "read")
        return notebook

    async def list_notebooks(self, user_id: uuid.UUID, limit: int = 100, offset: int = 0) -> List[Notebook]:
        """Собственные и общие блокноты пользователя"""
        return await self.notebook_repository.get_for_user(user_id, limit, offset)

    async def create_notebook(self, notebook_data: NotebookCreate, owner_id: uuid.UUID) -> Notebook:
        """Создание нового блокнота"""
        with self._outcome("Notebook created"):
            notebook = Notebook.create_notebook(
                title=notebook_data.title,
                owner_id=owner_id,
                description=notebook_data.description
            )
            return await self.notebook_repository.create(notebook)

    async def update_notebook(
        self,
        notebook_uuid: uuid.UUID,
        update_data: NotebookUpdate,
        user_id: uuid.UUID
    ) -> Notebook:
        """Обновление заголовка и описания"""
        with self._outcome("Notebook updated"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "update")

            notebook.update_details(title=update_data.title, description=update_data.description)
            return await self.notebook_repository.save(notebook)

    async def delete_notebook(self, notebook_uuid: uuid.UUID, user_id: uuid.UUID) -> None:
        """Удаление блокнота (только владелец)"""
        with self._outcome("Notebook deleted"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "delete", owner_only=True)
            await self.notebook_repository.delete(notebook)

    async def add_page(self, notebook_uuid: uuid.UUID, page_data: PageCreate, user_id: uuid.UUID) -> Page:
        """Добавление страницы"""
        with self._outcome("Page created"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "edit")

            page = notebook.pages.add_page(page_data.title, page_data.parent_id)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return page

    async def rename_page(
        self,
        notebook_uuid: uuid.UUID,
        page_uuid: uuid.UUID,
        title: str,
        user_id: uuid.UUID
    ) -> Page:
        """Переименование страницы"""
        with self._outcome("Page renamed"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "edit")

            page = notebook.pages.rename(page_uuid, title)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return page

    async def move_page(
        self,
        notebook_uuid: uuid.UUID,
        page_uuid: uuid.UUID,
        move_data: PageMove,
        user_id: uuid.UUID
    ) -> Page:
        """Перенос страницы к другому родителю и/или на другую позицию"""
        with self._outcome("Page moved"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "edit")

            page = notebook.pages.get(page_uuid)
            if move_data.reparent_requested:
                page = notebook.pages.reparent(page_uuid, move_data.parent_id)
            if move_data.position is not None:
                page = notebook.pages.reorder(page_uuid, move_data.position)

            notebook.touch()
            await self.notebook_repository.save(notebook)
            return page

    async def delete_page(
        self,
        notebook_uuid: uuid.UUID,
        page_uuid: uuid.UUID,
        user_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """Удаление страницы с потомками, возвращает удаленные id"""
        with self._outcome("Page deleted"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "edit")

            removed = notebook.pages.delete_page(page_uuid)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return removed

    async def add_collaborator(
        self,
        notebook_uuid: uuid.UUID,
        identifier: Union[InviteTarget, uuid.UUID, str],
        user_id: uuid.UUID
    ) -> Collaborator:
        """Приглашение соавтора по id или email"""
        # Разбор адресата до любых обращений к агрегату
        target = identifier if isinstance(identifier, InviteTarget) else InviteTarget.parse(identifier)

        with self._outcome("Collaborator added"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "share")

            if target.is_email:
                identity = await self.identity_service.resolve_email(target.value)
            else:
                identity = await self.identity_service.resolve_user(target.value)

            collaborator = notebook.collaborators.invite(target, identity)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return collaborator

    async def delete_collaborator(
        self,
        notebook_uuid: uuid.UUID,
        collaborator_user_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> Collaborator:
        """Отзыв доступа у соавтора"""
        with self._outcome("Collaborator removed"):
            notebook = await self._load(notebook_uuid)
            if collaborator_user_id == notebook.owner_id:
                raise CannotRevokeOwner(notebook.uuid, notebook.owner_id)
            self._authorize(notebook, user_id, "share")

            collaborator = notebook.collaborators.revoke(collaborator_user_id)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return collaborator

    async def delete_pending_invite(
        self,
        notebook_uuid: uuid.UUID,
        email: str,
        user_id: uuid.UUID
    ) -> Collaborator:
        """Отмена приглашения, которое еще не принято"""
        target = InviteTarget.by_email(email)

        with self._outcome("Invitation cancelled"):
            notebook = await self._load(notebook_uuid)
            self._authorize(notebook, user_id, "share")

            collaborator = notebook.collaborators.revoke_pending(target.value)
            notebook.touch()
            await self.notebook_repository.save(notebook)
            return collaborator

    async def resolve_pending_invites(self, identity: IdentityRef) -> int:
        """Привязка ожидающих приглашений к только что созданному аккаунту"""
        if not identity.email:
            return 0

        resolved = 0
        notebook_ids = await self.notebook_repository.get_ids_with_pending_invite(identity.email)
        for notebook_uuid in notebook_ids:
            for attempt in range(RESOLVE_ATTEMPTS):
                notebook = await self.notebook_repository.get_by_uuid(notebook_uuid)
                if notebook is None or not notebook.collaborators.resolve_pending(identity):
                    break
                try:
                    await self.notebook_repository.save(notebook)
                except Conflict:
                    logger.info(f"Retrying invite resolution for notebook {notebook_uuid} (attempt {attempt + 1})")
                    continue
                resolved += 1
                break
            else:
                logger.warning(f"Gave up resolving invite for {identity.email} on notebook {notebook_uuid}")

        if resolved:
            self.notifier.success(f"Resolved {resolved} pending invitation(s) for {identity.email}")
        return resolved

    async def navigate(
        self,
        notebook_uuid: uuid.UUID,
        requested_page_id: Union[uuid.UUID, str, None],
        user_id: uuid.UUID
    ) -> NavigationResult:
        """Выбор страницы для отображения при открытии блокнота"""
        notebook = await self.get_notebook(notebook_uuid, user_id)
        return navigate(notebook, requested_page_id)

    async def _load(self, notebook_uuid: uuid.UUID) -> Notebook:
        notebook = await self.notebook_repository.get_by_uuid(notebook_uuid)
        if notebook is None:
            raise NotebookNotFound(notebook_uuid)
        return notebook

    def _authorize(
        self,
        notebook: Notebook,
        user_id: uuid.UUID,
        action: str,
        owner_only: bool = False
    ) -> Role:
        role = notebook.role_of(user_id)
        allowed = role is Role.OWNER if owner_only else role.can_write
        if not allowed:
            raise Forbidden(notebook.uuid, user_id, action)
        return role

    @contextmanager
    def _outcome(self, message: str):
        try:
            yield
        except WorkspaceError as e:
            self.notifier.failure(f"{message} failed: {e.message}")
            raise
        else:
            self.notifier.success(message)
