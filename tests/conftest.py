"""Pytest configuration and shared fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import init_models
from app.db.models.notebook import Notebook as NotebookModel
from app.db.repositories.notebook_repository import NotebookRepository
from app.db.repositories.user_repository import UserRepository
from app.domains.notebooks.entities import Notebook
from tests.test_utils import RecordingNotifier, make_page, make_user


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def notebook(owner_id):
    """An empty notebook owned by owner_id."""
    return Notebook.create_notebook(title="Research", owner_id=owner_id)


@pytest.fixture
def nested_notebook(owner_id):
    """
    Notebook with the tree:

        a
        ├── b
        │   └── c
        │       └── d
        └── e
        f
    """
    notebook_id = uuid.uuid4()
    a = make_page(notebook_id, "a", order=0)
    b = make_page(notebook_id, "b", parent=a, order=0)
    c = make_page(notebook_id, "c", parent=b, order=0)
    d = make_page(notebook_id, "d", parent=c, order=0)
    e = make_page(notebook_id, "e", parent=a, order=1)
    f = make_page(notebook_id, "f", order=1)
    return Notebook(
        uuid=notebook_id,
        title="Nested",
        owner_id=owner_id,
        pages=[a, b, c, d, e, f]
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(db):
    """Persisted users: alice (owner), bob, carol."""
    repository = UserRepository(db)
    created = {}
    for username in ("alice", "bob", "carol"):
        created[username] = await repository.create(make_user(username))
    return created


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def concurrent_write(monkeypatch):
    """
    Returns a function that makes the next NotebookRepository.save run
    after another writer has already bumped the stored version.
    The function returns the list of bumped notebook ids.
    """
    original_save = NotebookRepository.save
    bumped = []

    async def save(self, notebook):
        if not bumped:
            bumped.append(notebook.uuid)
            await self.session.execute(
                update(NotebookModel)
                .where(NotebookModel.uuid == notebook.uuid)
                .values(version=NotebookModel.version + 1)
                .execution_options(synchronize_session=False)
            )
        return await original_save(self, notebook)

    def arm():
        monkeypatch.setattr(NotebookRepository, "save", save)
        return bumped

    return arm
