from typing import Optional, List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, insert, update, delete, or_
from sqlalchemy.exc import IntegrityError
import logging
import uuid

from app.db.models.notebook import (
    Notebook as NotebookModel,
    Page as PageModel,
    Collaborator as CollaboratorModel
)
from app.domains.notebooks.collaborators import Collaborator
from app.domains.notebooks.entities import Notebook
from app.domains.notebooks.exceptions import Conflict
from app.domains.notebooks.page_tree import Page

logger = logging.getLogger(__name__)


class NotebookRepository:
    """
    Репозиторий агрегата блокнота.

    Блокнот читается и сохраняется целиком: реквизиты, все страницы и все
    соавторы. Сохранение проверяет версию агрегата и увеличивает ее на
    единицу; устаревшая версия приводит к Conflict без каких-либо записей.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notebook: Notebook) -> Notebook:
        """Создание нового блокнота"""
        db_notebook = NotebookModel(
            uuid=notebook.uuid,
            title=notebook.title,
            description=notebook.description,
            owner_id=notebook.owner_id,
            version=notebook.version,
            created_at=notebook.created_at,
            updated_at=notebook.updated_at
        )

        self.session.add(db_notebook)
        try:
            await self.session.flush()
            await self._sync_pages(notebook)
            await self._sync_collaborators(notebook)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValueError("Invalid owner_id")

        return notebook

    async def get_by_uuid(self, notebook_uuid: uuid.UUID) -> Optional[Notebook]:
        """Получение агрегата блокнота по UUID"""
        result = await self.session.execute(
            select(NotebookModel)
            .where(NotebookModel.uuid == notebook_uuid)
            .execution_options(populate_existing=True)
        )
        db_notebook = result.scalar_one_or_none()
        return await self._load(db_notebook) if db_notebook else None

    async def get_for_user(self, user_id: uuid.UUID, limit: int = 100, offset: int = 0) -> List[Notebook]:
        """Блокноты пользователя: собственные и те, где он соавтор"""
        shared = select(CollaboratorModel.notebook_id).where(CollaboratorModel.user_id == user_id)
        result = await self.session.execute(
            select(NotebookModel)
            .where(or_(NotebookModel.owner_id == user_id, NotebookModel.uuid.in_(shared)))
            .order_by(NotebookModel.updated_at.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        db_notebooks = result.scalars().all()
        return [await self._load(db_notebook) for db_notebook in db_notebooks]

    async def get_ids_with_pending_invite(self, email: str) -> List[uuid.UUID]:
        """Блокноты, где есть ожидающее приглашение на этот email"""
        result = await self.session.execute(
            select(CollaboratorModel.notebook_id)
            .where(
                CollaboratorModel.user_id.is_(None),
                CollaboratorModel.email == email.lower()
            )
            .distinct()
        )
        return list(result.scalars().all())

    async def save(self, notebook: Notebook) -> Notebook:
        """Сохранение агрегата с проверкой версии"""
        expected_version = notebook.version
        result = await self.session.execute(
            update(NotebookModel)
            .where(
                NotebookModel.uuid == notebook.uuid,
                NotebookModel.version == expected_version
            )
            .values(
                title=notebook.title,
                description=notebook.description,
                updated_at=notebook.updated_at,
                version=expected_version + 1
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            await self.session.rollback()
            logger.warning(f"Stale commit for notebook {notebook.uuid} at version {expected_version}")
            raise Conflict(notebook.uuid, expected_version)

        await self._sync_pages(notebook)
        await self._sync_collaborators(notebook)
        await self.session.commit()

        notebook.version = expected_version + 1
        return notebook

    async def delete(self, notebook: Notebook) -> None:
        """Удаление блокнота вместе со страницами и соавторами"""
        await self.session.execute(
            delete(PageModel)
            .where(PageModel.notebook_id == notebook.uuid)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(CollaboratorModel)
            .where(CollaboratorModel.notebook_id == notebook.uuid)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(NotebookModel)
            .where(
                NotebookModel.uuid == notebook.uuid,
                NotebookModel.version == notebook.version
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            await self.session.rollback()
            raise Conflict(notebook.uuid, notebook.version)

        await self.session.commit()

    async def _sync_pages(self, notebook: Notebook) -> None:
        result = await self.session.execute(
            select(PageModel.uuid, PageModel.parent_id, PageModel.title, PageModel.order)
            .where(PageModel.notebook_id == notebook.uuid)
        )
        existing = {row.uuid: (row.parent_id, row.title, row.order) for row in result.all()}

        # Прямой обход: родитель записывается раньше детей
        pages = notebook.pages.walk()
        for page in pages:
            values = dict(
                parent_id=page.parent_id,
                title=page.title,
                order=page.order,
                updated_at=page.updated_at
            )
            if page.uuid in existing:
                # Неизмененные страницы не переписываются
                if existing[page.uuid] == (page.parent_id, page.title, page.order):
                    continue
                await self.session.execute(
                    update(PageModel)
                    .where(PageModel.uuid == page.uuid)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            else:
                await self.session.execute(
                    insert(PageModel).values(
                        uuid=page.uuid,
                        notebook_id=notebook.uuid,
                        created_at=page.created_at,
                        **values
                    )
                )

        removed = set(existing) - {page.uuid for page in pages}
        if removed:
            await self.session.execute(
                delete(PageModel)
                .where(PageModel.uuid.in_(removed))
                .execution_options(synchronize_session=False)
            )

    async def _sync_collaborators(self, notebook: Notebook) -> None:
        result = await self.session.execute(
            select(CollaboratorModel.uuid, CollaboratorModel.user_id, CollaboratorModel.email, CollaboratorModel.username)
            .where(CollaboratorModel.notebook_id == notebook.uuid)
        )
        existing = {row.uuid: (row.user_id, row.email, row.username) for row in result.all()}
        collaborators = list(notebook.collaborators)

        removed = set(existing) - {row.uuid for row in collaborators}
        if removed:
            await self.session.execute(
                delete(CollaboratorModel)
                .where(CollaboratorModel.uuid.in_(removed))
                .execution_options(synchronize_session=False)
            )

        for row in collaborators:
            values = dict(
                user_id=row.user_id,
                email=row.email,
                username=row.username,
                updated_at=row.updated_at
            )
            if row.uuid in existing:
                if existing[row.uuid] == (row.user_id, row.email, row.username):
                    continue
                await self.session.execute(
                    update(CollaboratorModel)
                    .where(CollaboratorModel.uuid == row.uuid)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            else:
                await self.session.execute(
                    insert(CollaboratorModel).values(
                        uuid=row.uuid,
                        notebook_id=notebook.uuid,
                        created_at=row.created_at,
                        **values
                    )
                )

    async def _load(self, db_notebook: NotebookModel) -> Notebook:
        pages = await self.session.execute(
            select(PageModel)
            .where(PageModel.notebook_id == db_notebook.uuid)
            .order_by(PageModel.order.asc(), PageModel.created_at.asc())
            .execution_options(populate_existing=True)
        )
        collaborators = await self.session.execute(
            select(CollaboratorModel)
            .where(CollaboratorModel.notebook_id == db_notebook.uuid)
            .order_by(CollaboratorModel.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return self._to_domain(db_notebook, pages.scalars().all(), collaborators.scalars().all())

    def _to_domain(
        self,
        db_notebook: NotebookModel,
        db_pages: Sequence[PageModel],
        db_collaborators: Sequence[CollaboratorModel]
    ) -> Notebook:
        """Преобразование моделей БД в доменный агрегат"""
        return Notebook(
            uuid=db_notebook.uuid,
            title=db_notebook.title,
            description=db_notebook.description,
            owner_id=db_notebook.owner_id,
            version=db_notebook.version,
            created_at=db_notebook.created_at,
            updated_at=db_notebook.updated_at,
            pages=[
                Page(
                    uuid=db_page.uuid,
                    notebook_id=db_page.notebook_id,
                    title=db_page.title,
                    parent_id=db_page.parent_id,
                    order=db_page.order,
                    created_at=db_page.created_at,
                    updated_at=db_page.updated_at
                )
                for db_page in db_pages
            ],
            collaborators=[
                Collaborator(
                    uuid=db_row.uuid,
                    notebook_id=db_row.notebook_id,
                    email=db_row.email,
                    user_id=db_row.user_id,
                    username=db_row.username,
                    created_at=db_row.created_at,
                    updated_at=db_row.updated_at
                )
                for db_row in db_collaborators
            ]
        )
