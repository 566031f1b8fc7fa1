from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.api.http.auth import get_current_user
from app.api.http.errors import workspace_http_error
from app.api.http.notebooks import page_response
from app.core.db import get_db
from app.domains.identity.entities import User
from app.domains.notebooks.exceptions import WorkspaceError
from app.domains.notebooks.schemas import (
    PageCreate, PageRename, PageMove, PageResponse, DeletedPagesResponse
)
from app.domains.notebooks.services import NotebookService

router = APIRouter(prefix="/notebooks/{notebook_uuid}/pages", tags=["pages"])


@router.post("/", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
async def add_page(
    notebook_uuid: uuid.UUID,
    page_data: PageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Добавление страницы"""
    notebook_service = NotebookService(db)

    try:
        page = await notebook_service.add_page(notebook_uuid, page_data, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return page_response(page)


@router.patch("/{page_uuid}", response_model=PageResponse)
async def rename_page(
    notebook_uuid: uuid.UUID,
    page_uuid: uuid.UUID,
    rename_data: PageRename,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Переименование страницы"""
    notebook_service = NotebookService(db)

    try:
        page = await notebook_service.rename_page(notebook_uuid, page_uuid, rename_data.title, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return page_response(page)


@router.post("/{page_uuid}/move", response_model=PageResponse)
async def move_page(
    notebook_uuid: uuid.UUID,
    page_uuid: uuid.UUID,
    move_data: PageMove,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Перенос страницы к другому родителю или на другую позицию"""
    notebook_service = NotebookService(db)

    try:
        page = await notebook_service.move_page(notebook_uuid, page_uuid, move_data, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return page_response(page)


@router.delete("/{page_uuid}", response_model=DeletedPagesResponse)
async def delete_page(
    notebook_uuid: uuid.UUID,
    page_uuid: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Удаление страницы вместе с вложенными страницами"""
    notebook_service = NotebookService(db)

    try:
        removed = await notebook_service.delete_page(notebook_uuid, page_uuid, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return DeletedPagesResponse(removed_ids=removed)
