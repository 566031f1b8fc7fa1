import uuid

import pytest

from app.domains.notebooks.exceptions import (
    CycleDetected, EmptyNotebook, InvalidParent, PageNotFound
)
from app.domains.notebooks.page_tree import PageTree
from tests.test_utils import make_page, page_named


def titles(pages):
    return [page.title for page in pages]


def test_add_root_pages_get_increasing_order(notebook):
    first = notebook.pages.add_page("first")
    second = notebook.pages.add_page("second")
    third = notebook.pages.add_page("third")

    assert (first.order, second.order, third.order) == (0, 1, 2)
    assert titles(notebook.pages.roots()) == ["first", "second", "third"]
    assert all(page.notebook_id == notebook.uuid for page in notebook.pages)


def test_add_child_page_orders_within_its_sibling_group(notebook):
    root = notebook.pages.add_page("root")
    notebook.pages.add_page("other root")
    child_one = notebook.pages.add_page("child one", root.uuid)
    child_two = notebook.pages.add_page("child two", root.uuid)

    assert child_one.order == 0
    assert child_two.order == 1
    assert titles(notebook.pages.children(root.uuid)) == ["child one", "child two"]


def test_add_page_with_unknown_parent_fails_without_side_effects(notebook):
    notebook.pages.add_page("root")
    missing = uuid.uuid4()

    with pytest.raises(InvalidParent) as exc_info:
        notebook.pages.add_page("orphan", missing)

    assert exc_info.value.parent_id == missing
    assert len(notebook.pages) == 1


def test_parent_from_another_notebook_is_invalid(notebook, nested_notebook):
    foreign = page_named(nested_notebook, "a")

    with pytest.raises(InvalidParent):
        notebook.pages.add_page("child", foreign.uuid)


def test_first_page_is_lowest_order_root(nested_notebook):
    assert nested_notebook.pages.first_page().title == "a"


def test_first_page_is_deterministic(nested_notebook):
    first = nested_notebook.pages.first_page()
    again = nested_notebook.pages.first_page()

    assert first.uuid == again.uuid


def test_first_page_ties_are_broken_by_insertion_sequence():
    notebook_id = uuid.uuid4()
    early = make_page(notebook_id, "early", order=0)
    late = make_page(notebook_id, "late", order=0)

    tree = PageTree(notebook_id, [early, late])

    assert tree.first_page().uuid == early.uuid


def test_first_page_of_empty_notebook(notebook):
    with pytest.raises(EmptyNotebook):
        notebook.pages.first_page()


@pytest.mark.parametrize("descendant", ["b", "c", "d", "e"])
def test_reparent_under_descendant_is_a_cycle(nested_notebook, descendant):
    a = page_named(nested_notebook, "a")
    target = page_named(nested_notebook, descendant)

    with pytest.raises(CycleDetected):
        nested_notebook.pages.reparent(a.uuid, target.uuid)

    assert a.parent_id is None


def test_reparent_under_itself_is_a_cycle(nested_notebook):
    b = page_named(nested_notebook, "b")

    with pytest.raises(CycleDetected):
        nested_notebook.pages.reparent(b.uuid, b.uuid)


def test_reparent_to_unknown_parent(nested_notebook):
    b = page_named(nested_notebook, "b")

    with pytest.raises(InvalidParent):
        nested_notebook.pages.reparent(b.uuid, uuid.uuid4())


def test_reparent_appends_to_new_sibling_group(nested_notebook):
    c = page_named(nested_notebook, "c")
    a = page_named(nested_notebook, "a")

    nested_notebook.pages.reparent(c.uuid, a.uuid)

    assert titles(nested_notebook.pages.children(a.uuid)) == ["b", "e", "c"]
    assert c.order == 2
    assert titles(nested_notebook.pages.descendants(c.uuid)) == ["d"]


def test_reparent_to_root(nested_notebook):
    d = page_named(nested_notebook, "d")

    nested_notebook.pages.reparent(d.uuid, None)

    assert titles(nested_notebook.pages.roots()) == ["a", "f", "d"]
    assert d.is_root


def test_reorder_moves_page_and_renumbers_siblings(notebook):
    for title in ("one", "two", "three"):
        notebook.pages.add_page(title)
    three = page_named(notebook, "three")

    notebook.pages.reorder(three.uuid, 0)

    roots = notebook.pages.roots()
    assert titles(roots) == ["three", "one", "two"]
    assert [page.order for page in roots] == [0, 1, 2]
    assert notebook.pages.first_page().uuid == three.uuid


def test_reorder_clamps_position(notebook):
    one = notebook.pages.add_page("one")
    notebook.pages.add_page("two")

    notebook.pages.reorder(one.uuid, 99)

    assert titles(notebook.pages.roots()) == ["two", "one"]


def test_delete_removes_page_and_all_descendants_only(nested_notebook):
    b = page_named(nested_notebook, "b")
    expected = {b.uuid, page_named(nested_notebook, "c").uuid, page_named(nested_notebook, "d").uuid}

    removed = nested_notebook.pages.delete_page(b.uuid)

    assert set(removed) == expected
    assert removed[0] == b.uuid
    assert titles(nested_notebook.pages.walk()) == ["a", "e", "f"]


def test_delete_unknown_page(nested_notebook):
    with pytest.raises(PageNotFound):
        nested_notebook.pages.delete_page(uuid.uuid4())


def test_order_gaps_are_repaired_on_next_insert(notebook):
    first = notebook.pages.add_page("first")
    second = notebook.pages.add_page("second")
    third = notebook.pages.add_page("third")

    notebook.pages.delete_page(second.uuid)
    assert (first.order, third.order) == (0, 2)

    fourth = notebook.pages.add_page("fourth")

    assert (first.order, third.order, fourth.order) == (0, 1, 2)


def test_ancestors_are_listed_nearest_first(nested_notebook):
    d = page_named(nested_notebook, "d")

    assert titles(nested_notebook.pages.ancestors(d.uuid)) == ["c", "b", "a"]


def test_walk_is_pre_order(nested_notebook):
    assert titles(nested_notebook.pages.walk()) == ["a", "b", "c", "d", "e", "f"]


def test_loading_dangling_parent_reference_fails():
    notebook_id = uuid.uuid4()
    page = make_page(notebook_id, "lost")
    page.parent_id = uuid.uuid4()

    with pytest.raises(InvalidParent) as exc_info:
        PageTree(notebook_id, [page])

    assert exc_info.value.page_id == page.uuid


def test_loading_cyclic_parents_fails():
    notebook_id = uuid.uuid4()
    x = make_page(notebook_id, "x")
    y = make_page(notebook_id, "y", parent=x)
    x.parent_id = y.uuid

    with pytest.raises(CycleDetected):
        PageTree(notebook_id, [x, y])


def test_loading_page_of_another_notebook_fails():
    page = make_page(uuid.uuid4(), "elsewhere")

    with pytest.raises(ValueError):
        PageTree(uuid.uuid4(), [page])
