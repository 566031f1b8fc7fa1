from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from app.domains.notebooks.collaborators import InviteTarget


def _strip_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError('Title cannot be empty')
    return v.strip()


class NotebookCreate(BaseModel):
    """Схема для создания блокнота"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=200)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _strip_title(v)


class NotebookUpdate(BaseModel):
    """Схема для обновления блокнота"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=200)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _strip_title(v)


class PageCreate(BaseModel):
    """Схема для создания страницы"""
    title: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[uuid.UUID] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _strip_title(v)


class PageRename(BaseModel):
    """Схема для переименования страницы"""
    title: str = Field(..., min_length=1, max_length=255)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _strip_title(v)


class PageMove(BaseModel):
    """
    Схема для перемещения страницы.

    Если parent_id передан (в том числе null), страница переносится к новому
    родителю; position задает место среди соседей.
    """
    parent_id: Optional[uuid.UUID] = None
    position: Optional[int] = Field(None, ge=0)

    @property
    def reparent_requested(self) -> bool:
        return "parent_id" in self.model_fields_set


class CollaboratorInvite(BaseModel):
    """Схема для приглашения соавтора по id или email"""
    identifier: str = Field(..., min_length=1, max_length=255)

    def to_target(self) -> InviteTarget:
        return InviteTarget.parse(self.identifier)


class PageResponse(BaseModel):
    """Схема для ответа с данными страницы"""
    id: uuid.UUID
    notebook_id: uuid.UUID
    title: str
    parent_id: Optional[uuid.UUID] = None
    order: int


class CollaboratorResponse(BaseModel):
    """Схема для ответа с данными соавтора"""
    id: uuid.UUID
    notebook_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    email: Optional[str] = None
    username: str
    pending: bool


class NotebookResponse(BaseModel):
    """Схема для ответа с агрегатом блокнота"""
    id: uuid.UUID
    title: str
    description: str
    owner_id: uuid.UUID
    version: int
    created_at: datetime
    updated_at: datetime
    pages: List[PageResponse]
    collaborators: List[CollaboratorResponse]

    model_config = ConfigDict(from_attributes=True)


class NotebookSummaryResponse(BaseModel):
    """Схема для карточки блокнота в списке"""
    id: uuid.UUID
    title: str
    description: str
    owner_id: uuid.UUID
    page_count: int
    updated_at: datetime


class NotebookListResponse(BaseModel):
    """Схема для списка блокнотов"""
    notebooks: List[NotebookSummaryResponse]
    page: int
    per_page: int


class NavigationResponse(BaseModel):
    """Результат навигации: страница, редирект или пустой блокнот"""
    page: Optional[uuid.UUID] = None
    redirect_to: Optional[uuid.UUID] = None
    empty: bool = False


class DeletedPagesResponse(BaseModel):
    """Удаленные страницы (сама страница и все потомки)"""
    removed_ids: List[uuid.UUID]
