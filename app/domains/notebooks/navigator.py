"""
Выбор текущей страницы при открытии блокнота.

navigate() - чистая функция над уже загруженным агрегатом; переход по
redirect выполняет вызывающая сторона. WorkspaceSession отслеживает
состояние одной открытой вкладки блокнота.
"""
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from app.domains.notebooks.entities import Notebook
from app.domains.notebooks.exceptions import EmptyNotebook, InvalidTransition


class NavigationKind(str, Enum):
    PAGE = "page"
    REDIRECT = "redirect"
    EMPTY = "empty"


@dataclass(frozen=True)
class NavigationResult:
    kind: NavigationKind
    page_id: Optional[uuid.UUID] = None

    @property
    def requires_redirect(self) -> bool:
        return self.kind is NavigationKind.REDIRECT

    @property
    def is_empty(self) -> bool:
        return self.kind is NavigationKind.EMPTY

    @classmethod
    def page(cls, page_id: uuid.UUID) -> "NavigationResult":
        return cls(kind=NavigationKind.PAGE, page_id=page_id)

    @classmethod
    def redirect(cls, page_id: uuid.UUID) -> "NavigationResult":
        return cls(kind=NavigationKind.REDIRECT, page_id=page_id)

    @classmethod
    def empty(cls) -> "NavigationResult":
        return cls(kind=NavigationKind.EMPTY)

    def to_dict(self) -> dict:
        if self.kind is NavigationKind.PAGE:
            return {"page": str(self.page_id)}
        if self.kind is NavigationKind.REDIRECT:
            return {"redirect_to": str(self.page_id)}
        return {"empty": True}


def _coerce_page_id(value: Union[uuid.UUID, str, None]) -> Optional[uuid.UUID]:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def navigate(notebook: Notebook, requested_page_id: Union[uuid.UUID, str, None] = None) -> NavigationResult:
    """Страница для отображения и признак необходимости редиректа"""
    page_id = _coerce_page_id(requested_page_id)
    if page_id is not None and page_id in notebook.pages:
        return NavigationResult.page(page_id)

    try:
        first_page = notebook.pages.first_page()
    except EmptyNotebook:
        return NavigationResult.empty()

    return NavigationResult.redirect(first_page.uuid)


class NavigationState(str, Enum):
    LOADING = "loading"
    HAS_VALID_PAGE = "has_valid_page"
    REDIRECTING = "redirecting"
    EMPTY = "empty"


class WorkspaceSession:
    """Состояние открытого блокнота: Loading -> {HasValidPage, Redirecting, Empty}"""

    def __init__(self, notebook_id: uuid.UUID):
        self.notebook_id = notebook_id
        self.state = NavigationState.LOADING
        self.current_page_id: Optional[uuid.UUID] = None
        self.redirect_target: Optional[uuid.UUID] = None

    def loaded(
        self,
        notebook: Notebook,
        requested_page_id: Union[uuid.UUID, str, None] = None
    ) -> NavigationResult:
        """Блокнот загружен: вычисляем целевую страницу"""
        self._expect(NavigationState.LOADING, "loaded")

        result = navigate(notebook, requested_page_id)
        if result.kind is NavigationKind.PAGE:
            self.state = NavigationState.HAS_VALID_PAGE
            self.current_page_id = result.page_id
        elif result.kind is NavigationKind.REDIRECT:
            self.state = NavigationState.REDIRECTING
            self.redirect_target = result.page_id
        else:
            self.state = NavigationState.EMPTY
        return result

    def redirect_completed(self, page_id: Union[uuid.UUID, str]) -> None:
        self._expect(NavigationState.REDIRECTING, "redirect_completed")
        if _coerce_page_id(page_id) != self.redirect_target:
            raise InvalidTransition(self.state.value, "redirect_completed")

        self.state = NavigationState.HAS_VALID_PAGE
        self.current_page_id = self.redirect_target
        self.redirect_target = None

    def page_created(self, page_id: Union[uuid.UUID, str]) -> None:
        self._expect(NavigationState.EMPTY, "page_created")
        self.state = NavigationState.HAS_VALID_PAGE
        self.current_page_id = _coerce_page_id(page_id)

    def _expect(self, state: NavigationState, event: str) -> None:
        if self.state is not state:
            raise InvalidTransition(self.state.value, event)
