"""Test utilities for building users, pages and notebooks."""
import uuid

from app.domains.identity.entities import User
from app.domains.notebooks.page_tree import Page


class RecordingNotifier:
    """Collects outcome messages instead of logging them."""

    def __init__(self):
        self.successes = []
        self.failures = []

    def success(self, message):
        self.successes.append(message)

    def failure(self, message):
        self.failures.append(message)


def make_user(username, email=None):
    return User(
        uuid=uuid.uuid4(),
        email=email or f"{username}@mail.com",
        username=username,
        password_hash="not-a-real-hash"
    )


def make_page(notebook_id, title, parent=None, order=0):
    return Page(
        uuid=uuid.uuid4(),
        notebook_id=notebook_id,
        title=title,
        parent_id=parent.uuid if parent is not None else None,
        order=order
    )


def page_named(notebook, title):
    return next(page for page in notebook.pages.walk() if page.title == title)
