from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.api.http.auth import get_current_user
from app.api.http.errors import workspace_http_error, validation_http_error
from app.api.http.notebooks import collaborator_response
from app.core.db import get_db
from app.domains.identity.entities import User
from app.domains.notebooks.collaborators import InviteTarget
from app.domains.notebooks.exceptions import WorkspaceError
from app.domains.notebooks.schemas import CollaboratorInvite, CollaboratorResponse
from app.domains.notebooks.services import NotebookService

router = APIRouter(prefix="/notebooks/{notebook_uuid}/collaborators", tags=["collaborators"])


@router.post("/", response_model=CollaboratorResponse, status_code=status.HTTP_201_CREATED)
async def add_collaborator(
    notebook_uuid: uuid.UUID,
    invite: CollaboratorInvite,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Приглашение соавтора по id пользователя или email"""
    notebook_service = NotebookService(db)

    try:
        target = invite.to_target()
    except ValueError as e:
        raise validation_http_error(e)

    try:
        collaborator = await notebook_service.add_collaborator(notebook_uuid, target, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return collaborator_response(collaborator)


@router.delete("/{identifier}", response_model=CollaboratorResponse)
async def delete_collaborator(
    notebook_uuid: uuid.UUID,
    identifier: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Отзыв доступа: id пользователя или email ожидающего приглашения"""
    notebook_service = NotebookService(db)

    try:
        target = InviteTarget.parse(identifier)
    except ValueError as e:
        raise validation_http_error(e)

    try:
        if target.is_email:
            collaborator = await notebook_service.delete_pending_invite(notebook_uuid, target.value, current_user.uuid)
        else:
            collaborator = await notebook_service.delete_collaborator(notebook_uuid, target.value, current_user.uuid)
    except WorkspaceError as e:
        raise workspace_http_error(e)

    return collaborator_response(collaborator)
