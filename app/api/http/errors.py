from fastapi import HTTPException, status

from app.domains.notebooks.exceptions import (
    WorkspaceError, NotebookNotFound, PageNotFound, UnknownUser, NotACollaborator,
    Forbidden, AlreadyCollaborator, Conflict
)

# Все прочие ошибки модели считаются ошибками запроса (400)
STATUS_CODES = {
    NotebookNotFound: status.HTTP_404_NOT_FOUND,
    PageNotFound: status.HTTP_404_NOT_FOUND,
    UnknownUser: status.HTTP_404_NOT_FOUND,
    NotACollaborator: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    AlreadyCollaborator: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
}


def workspace_http_error(error: WorkspaceError) -> HTTPException:
    """Преобразование доменной ошибки в HTTP ответ"""
    status_code = STATUS_CODES.get(type(error), status.HTTP_400_BAD_REQUEST)
    detail = error.to_dict()
    detail["retryable"] = error.retryable
    return HTTPException(status_code=status_code, detail=detail)


def validation_http_error(error: ValueError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(error)
    )
