from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.api.http.auth import get_current_user
from app.api.http.errors import workspace_http_error
from app.core.db import get_db
from app.domains.identity.entities import User
from app.domains.notebooks.collaborators import Collaborator
from app.domains.notebooks.entities import Notebook
from app.domains.notebooks.exceptions import WorkspaceError
from app.domains.notebooks.page_tree import Page
from app.domains.notebooks.schemas import (
    NotebookCreate, NotebookUpdate, NotebookResponse, NotebookListResponse,
    NotebookSummaryResponse, NavigationResponse, PageResponse, CollaboratorResponse
)
from app.domains.notebooks.services import NotebookService

router = APIRouter(prefix="/notebooks", tags=["notebooks"])


def page_response(page: Page) -> PageResponse:
    return PageResponse(
        id=page.uuid,
        notebook_id=page.notebook_id,
        title=page.title,
        parent_id=page.parent_id,
        order=page.order
    )


def collaborator_response(collaborator: Collaborator) -> CollaboratorResponse:
    return CollaboratorResponse(
        id=collaborator.uuid,
        notebook_id=collaborator.notebook_id,
        user_id=collaborator.user_id,
        email=collaborator.email,
        username=collaborator.username,
        pending=collaborator.is_pending
    )


def notebook_response(notebook: Notebook) -> NotebookResponse:
    return NotebookResponse(
        id=notebook.uuid,
        title=notebook.title,
        description=notebook.description,
        owner_id=notebook.owner_id,
        version=notebook.version,
        created_at=notebook.created_at,
        updated_at=notebook.updated_at,
        pages=[page_response(page) for page in notebook.pages.walk()],
        collaborators=[collaborator_response(row) for row in notebook.collaborators]
    )


@router.get("/", response_model=NotebookListResponse)
async def list_notebooks(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Блокноты текущего пользователя: собственные и общие"""
    notebook_service = NotebookService(db)

    notebooks = await notebook_service.list_notebooks(
        current_user.uuid,
        limit=per_page,
        offset=(page - 1) * per_page
    )

    return NotebookListResponse(
        notebooks=[
            NotebookSummaryResponse(
                id=notebook.uuid,
                title=notebook.title,
                description=notebook.description,
                owner_id=notebook.owner_id,
                page_count=len(notebook.pages),
                updated_at=notebook.updated_at
            )
            for notebook in notebooks
        ],
        page=page,
        per_page=per_page
    )


@router.post("/", response_model=NotebookResponse, status_code=status.HTTP_201_CREATED)
async def create_notebook(
    notebook_data: NotebookCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Создание нового блокнота"""
    notebook_service = NotebookService(db)

    try:
        notebook = await notebook_service.create_notebook(notebook_data, current_user.uuid)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return notebook_response(notebook)


@router.get("/{notebook_uuid}", response_model=NotebookResponse)
async def get_notebook(
    notebook_uuid: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Получение блокнота со страницами и соавторами"""
    notebook_service = NotebookService(db)

    try:
        notebook = await notebook_service.get_notebook(notebook_uuid, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return notebook_response(notebook)


@router.patch("/{notebook_uuid}", response_model=NotebookResponse)
async def update_notebook(
    notebook_uuid: uuid.UUID,
    update_data: NotebookUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Обновление блокнота"""
    notebook_service = NotebookService(db)

    try:
        notebook = await notebook_service.update_notebook(notebook_uuid, update_data, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return notebook_response(notebook)


@router.delete("/{notebook_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notebook(
    notebook_uuid: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Удаление блокнота со всеми страницами"""
    notebook_service = NotebookService(db)

    try:
        await notebook_service.delete_notebook(notebook_uuid, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)


@router.get("/{notebook_uuid}/navigate", response_model=NavigationResponse)
async def navigate_notebook(
    notebook_uuid: uuid.UUID,
    page_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Какую страницу показать при открытии блокнота"""
    notebook_service = NotebookService(db)

    try:
        result = await notebook_service.navigate(notebook_uuid, page_id, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return NavigationResponse(**result.to_dict())
