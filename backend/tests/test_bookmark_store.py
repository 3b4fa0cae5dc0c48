import asyncio

import pytest


def test_init_db_seeds_root_containers(backend_env):
    bookmark_store = backend_env["bookmark_store"]
    store = bookmark_store.BookmarkStore()

    tree = asyncio.run(store.get_tree())

    assert len(tree) == 1
    root = tree[0]
    assert root.id == "0"
    assert root.parent_id is None
    assert [(child.id, child.title) for child in root.children] == [
        ("1", "Bookmarks Bar"),
        ("2", "Other Bookmarks"),
    ]


def test_create_and_search_nodes(backend_env):
    bookmark_store = backend_env["bookmark_store"]
    store = bookmark_store.BookmarkStore()

    async def _run():
        folder = await store.create("1", "Tech")
        bookmark = await store.create(folder.id, "Spring Boot", "https://spring.io")
        found = await store.search("Tech")
        tree = await store.get_tree()
        return folder, bookmark, found, tree

    folder, bookmark, found, tree = asyncio.run(_run())

    assert folder.parent_id == "1"
    assert folder.is_leaf_bookmark is False
    assert bookmark.is_leaf_bookmark is True
    assert [node.id for node in found] == [folder.id]
    tech = tree[0].children[0].children[0]
    assert tech.title == "Tech"
    assert [child.url for child in tech.children] == ["https://spring.io"]

    payload = tree[0].as_dict()
    bar = payload["children"][0]
    assert bar["title"] == "Bookmarks Bar"
    assert bar["children"][0]["children"][0] == {
        "id": bookmark.id,
        "title": "Spring Boot",
        "index": 0,
        "parentId": folder.id,
        "url": "https://spring.io",
    }


def test_create_rejects_missing_parent_and_bookmark_parent(backend_env):
    bookmark_store = backend_env["bookmark_store"]
    store = bookmark_store.BookmarkStore()

    bookmark = asyncio.run(store.create("1", "Docs", "https://docs.example.org"))

    with pytest.raises(bookmark_store.BookmarkStoreError):
        asyncio.run(store.create("999", "Nowhere"))
    with pytest.raises(bookmark_store.BookmarkStoreError):
        asyncio.run(store.create(bookmark.id, "Inside bookmark"))
    with pytest.raises(bookmark_store.BookmarkStoreError):
        asyncio.run(store.create("not-a-number", "Broken"))


def test_children_keep_insertion_order(backend_env):
    bookmark_store = backend_env["bookmark_store"]
    database = backend_env["database"]
    store = bookmark_store.BookmarkStore()

    async def _run():
        for title in ("Zeta", "Alpha", "Mid"):
            await store.create("2", title)
        return await store.get_tree()

    tree = asyncio.run(_run())

    other = tree[0].children[1]
    assert [child.title for child in other.children] == ["Zeta", "Alpha", "Mid"]
    assert [child.index for child in other.children] == [0, 1, 2]
    assert database.count_nodes(folders_only=True) == 6


def test_nodes_are_stamped_with_aware_utc_time(backend_env):
    import models

    database = backend_env["database"]
    node = models.BookmarkNode(parent_id=1, title="Fresh")

    assert node.date_added.tzinfo is not None
    assert node.date_added.utcoffset().total_seconds() == 0
    created = database.create_node(1, "Stamped")
    assert created.date_added is not None
    assert database.get_node(created.id).title == "Stamped"
