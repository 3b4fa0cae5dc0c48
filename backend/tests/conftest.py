import importlib
import sys
from pathlib import Path
from typing import List, Optional

import pytest


# ``models`` stays loaded: redefining its table on the shared metadata fails.
MODULES = [
    "settings",
    "database",
    "runtime_settings",
    "messaging",
    "bookmark_store",
    "taxonomy",
    "extraction",
    "snapshot_cache",
    "prompting",
    "classifier",
    "path_resolver",
    "orchestrator",
    "app",
]


@pytest.fixture()
def backend_env(tmp_path, monkeypatch):
    backend_path = Path(__file__).resolve().parents[1]
    if str(backend_path) not in sys.path:
        sys.path.insert(0, str(backend_path))

    monkeypatch.chdir(tmp_path)
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    db_path = data_dir / "bookmarks.db"

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("INIT_RUN", "0")
    monkeypatch.setenv("API_KEY", "test-key")
    monkeypatch.setenv("API_BASE_URL", "https://llm.example.org/v1")
    monkeypatch.setenv("MODEL_NAME", "test-model")

    for name in MODULES:
        sys.modules.pop(name, None)

    modules = {}
    for module_name in MODULES:
        modules[module_name] = importlib.import_module(module_name)

    modules["database"].init_db()

    return {
        **modules,
        "app_module": modules["app"],
        "data_dir": data_dir,
    }


class FakeFolderStore:
    """In-memory folder store with the same contract as ``BookmarkStore``."""

    def __init__(self, folder_node_cls) -> None:
        self._cls = folder_node_cls
        self.nodes = {
            "0": folder_node_cls(id="0", title=""),
            "1": folder_node_cls(id="1", title="Bookmarks Bar", parent_id="0"),
            "2": folder_node_cls(id="2", title="Other Bookmarks", parent_id="0", index=1),
        }
        self._next_id = 3
        self.search_calls: List[str] = []
        self.fail_on_create: Optional[str] = None

    def add(self, parent_id: str, title: str, url: Optional[str] = None):
        node = self._cls(id=str(self._next_id), title=title, parent_id=parent_id, url=url)
        self._next_id += 1
        self.nodes[node.id] = node
        return node

    async def search(self, title: str):
        self.search_calls.append(title)
        return [node for node in self.nodes.values() if node.title == title]

    async def create(self, parent_id: str, title: str, url: Optional[str] = None):
        if self.fail_on_create == title:
            raise RuntimeError(f"cannot create {title}")
        if parent_id not in self.nodes:
            raise LookupError(parent_id)
        return self.add(parent_id, title, url)

    def folders(self):
        return [node for node in self.nodes.values() if node.url is None]


@pytest.fixture()
def fake_store(backend_env):
    return FakeFolderStore(backend_env["bookmark_store"].FolderNode)
