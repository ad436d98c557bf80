from concurrent.futures import ThreadPoolExecutor

from backend.todo_api.services.todo_store import TodoStore


def test_add_and_list():
    store = TodoStore()
    a = store.add_todo("a")
    b = store.add_todo("b")
    assert [t.id for t in store.list_todos()] == [a.id, b.id]
    assert len(store) == 2


def test_list_returns_copy():
    store = TodoStore()
    store.add_todo("a")
    listed = store.list_todos()
    listed.clear()
    assert len(store) == 1


def test_update_replaces_text_in_place():
    store = TodoStore()
    a = store.add_todo("a")
    b = store.add_todo("b")
    updated = store.update_todo(a.id, "A")
    assert updated is not None and updated.text == "A"
    assert [t.text for t in store.list_todos()] == ["A", "b"]
    assert store.list_todos()[1] == b


def test_update_unknown_returns_none():
    store = TodoStore()
    assert store.update_todo("nope", "x") is None


def test_delete():
    store = TodoStore()
    a = store.add_todo("a")
    assert store.delete_todo(a.id) is True
    assert store.delete_todo(a.id) is False
    assert store.list_todos() == []


def test_clear():
    store = TodoStore()
    store.add_todo("a")
    store.clear()
    assert len(store) == 0


def test_concurrent_adds_are_not_lost():
    store = TodoStore()
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: store.add_todo(f"todo {i}"), range(200)))
    todos = store.list_todos()
    assert len(todos) == 200
    assert len({t.id for t in todos}) == 200
