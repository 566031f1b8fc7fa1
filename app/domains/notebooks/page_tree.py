import uuid
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from app.domains.notebooks.exceptions import (
    CycleDetected, EmptyNotebook, InvalidParent, PageNotFound
)


class Page:
    """Страница блокнота: узел дерева страниц"""

    def __init__(
        self,
        uuid: uuid.UUID,
        notebook_id: uuid.UUID,
        title: str,
        parent_id: Optional[uuid.UUID] = None,
        order: int = 0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.notebook_id = notebook_id
        self.title = title
        self.parent_id = parent_id
        self.order = order
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def rename(self, new_title: str) -> None:
        """Переименование страницы"""
        self.title = new_title
        self.updated_at = datetime.utcnow()

    @classmethod
    def create_page(
        cls,
        notebook_id: uuid.UUID,
        title: str,
        parent_id: Optional[uuid.UUID] = None,
        order: int = 0
    ) -> "Page":
        """Создание новой страницы"""
        return cls(
            uuid=uuid.uuid4(),
            notebook_id=notebook_id,
            title=title,
            parent_id=parent_id,
            order=order
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Page):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Page(uuid={self.uuid}, title={self.title}, parent_id={self.parent_id}, order={self.order})"


class PageTree:
    """
    Упорядоченный лес страниц одного блокнота.

    Страницы хранятся в словаре id -> Page, а индекс детей по родителю
    перестраивается после каждой мутации. Порядок среди соседей задается
    парой (order, порядковый номер вставки).
    """

    def __init__(self, notebook_id: uuid.UUID, pages: Iterable[Page] = ()):
        self.notebook_id = notebook_id
        self._pages: Dict[uuid.UUID, Page] = {}
        self._sequence: Dict[uuid.UUID, int] = {}
        self._next_sequence = 0
        self._children: Dict[Optional[uuid.UUID], List[uuid.UUID]] = {}

        for page in pages:
            if page.notebook_id != notebook_id:
                raise ValueError(f"Page {page.uuid} belongs to notebook {page.notebook_id}, not {notebook_id}")
            self._register(page)

        self._validate()
        self._reindex()

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, page_id) -> bool:
        return page_id in self._pages

    def __iter__(self) -> Iterator[Page]:
        return iter(self.walk())

    def get(self, page_id: uuid.UUID) -> Page:
        page = self._pages.get(page_id)
        if page is None:
            raise PageNotFound(page_id, self.notebook_id)
        return page

    def children(self, parent_id: Optional[uuid.UUID] = None) -> List[Page]:
        """Дети страницы в порядке отображения (None - корневые страницы)"""
        return [self._pages[child_id] for child_id in self._children.get(parent_id, [])]

    def roots(self) -> List[Page]:
        return self.children(None)

    def ancestors(self, page_id: uuid.UUID) -> List[Page]:
        """Цепочка предков от ближайшего родителя до корня"""
        chain = []
        parent_id = self.get(page_id).parent_id
        while parent_id is not None:
            parent = self._pages[parent_id]
            chain.append(parent)
            parent_id = parent.parent_id
        return chain

    def descendants(self, page_id: uuid.UUID) -> List[Page]:
        """Все потомки страницы в прямом порядке обхода (без самой страницы)"""
        self.get(page_id)
        result = []
        stack = list(reversed(self._children.get(page_id, [])))
        while stack:
            current_id = stack.pop()
            result.append(self._pages[current_id])
            stack.extend(reversed(self._children.get(current_id, [])))
        return result

    def walk(self) -> List[Page]:
        """Прямой обход всего леса: родитель всегда раньше своих детей"""
        result = []
        for root in self.roots():
            result.append(root)
            result.extend(self.descendants(root.uuid))
        return result

    def first_page(self) -> Page:
        """Страница по умолчанию: корневая страница с наименьшим order"""
        roots = self.roots()
        if not roots:
            raise EmptyNotebook(self.notebook_id)
        return roots[0]

    def add_page(self, title: str, parent_id: Optional[uuid.UUID] = None) -> Page:
        """Добавление страницы в конец группы соседей"""
        if parent_id is not None and parent_id not in self._pages:
            raise InvalidParent(parent_id, self.notebook_id)

        page = Page.create_page(
            notebook_id=self.notebook_id,
            title=title,
            parent_id=parent_id,
            order=self._next_order(parent_id)
        )
        self._register(page)
        self._reindex()
        return page

    def rename(self, page_id: uuid.UUID, title: str) -> Page:
        page = self.get(page_id)
        page.rename(title)
        return page

    def reparent(self, page_id: uuid.UUID, new_parent_id: Optional[uuid.UUID]) -> Page:
        """Перенос страницы под другого родителя (None - в корень)"""
        page = self.get(page_id)

        if new_parent_id is not None:
            if new_parent_id == page_id:
                raise CycleDetected(page_id, new_parent_id)
            if new_parent_id not in self._pages:
                raise InvalidParent(new_parent_id, self.notebook_id, page_id)
            if any(descendant.uuid == new_parent_id for descendant in self.descendants(page_id)):
                raise CycleDetected(page_id, new_parent_id)

        if new_parent_id == page.parent_id:
            return page

        page.order = self._next_order(new_parent_id)
        page.parent_id = new_parent_id
        page.updated_at = datetime.utcnow()
        self._reindex()
        return page

    def reorder(self, page_id: uuid.UUID, position: int) -> Page:
        """Перемещение страницы на позицию position среди соседей"""
        page = self.get(page_id)
        siblings = [sibling_id for sibling_id in self._children.get(page.parent_id, []) if sibling_id != page_id]
        position = max(0, min(position, len(siblings)))
        siblings.insert(position, page_id)

        for index, sibling_id in enumerate(siblings):
            self._pages[sibling_id].order = index
        page.updated_at = datetime.utcnow()

        self._reindex()
        return page

    def delete_page(self, page_id: uuid.UUID) -> List[uuid.UUID]:
        """Удаление страницы вместе со всеми потомками, возвращает удаленные id"""
        page = self.get(page_id)
        removed = [page.uuid] + [descendant.uuid for descendant in self.descendants(page_id)]

        for removed_id in removed:
            del self._pages[removed_id]
            del self._sequence[removed_id]

        self._reindex()
        return removed

    def _register(self, page: Page) -> None:
        if page.uuid in self._pages:
            raise ValueError(f"Duplicate page id {page.uuid}")
        self._pages[page.uuid] = page
        self._sequence[page.uuid] = self._next_sequence
        self._next_sequence += 1

    def _next_order(self, parent_id: Optional[uuid.UUID]) -> int:
        # Дыры после удаления чинятся только при вставке в ту же группу
        siblings = self.children(parent_id)
        for index, sibling in enumerate(siblings):
            sibling.order = index
        return max((sibling.order for sibling in siblings), default=-1) + 1

    def _validate(self) -> None:
        for page in self._pages.values():
            if page.parent_id is not None and page.parent_id not in self._pages:
                raise InvalidParent(page.parent_id, self.notebook_id, page.uuid)

        for page in self._pages.values():
            seen = {page.uuid}
            parent_id = page.parent_id
            while parent_id is not None:
                if parent_id in seen:
                    raise CycleDetected(page.uuid, page.parent_id)
                seen.add(parent_id)
                parent_id = self._pages[parent_id].parent_id

    def _reindex(self) -> None:
        children: Dict[Optional[uuid.UUID], List[uuid.UUID]] = {}
        for page in self._pages.values():
            children.setdefault(page.parent_id, []).append(page.uuid)

        for sibling_ids in children.values():
            sibling_ids.sort(key=lambda page_id: (self._pages[page_id].order, self._sequence[page_id]))

        self._children = children
