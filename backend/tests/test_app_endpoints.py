import pytest
from fastapi.testclient import TestClient


class _SilentAgent:
    def trigger(self, page_id, url, request_id):
        return None


@pytest.fixture()
def client(backend_env, monkeypatch):
    app_module = backend_env["app_module"]
    bus = backend_env["messaging"].MessageBus()
    store = backend_env["bookmark_store"].BookmarkStore()
    cache = backend_env["snapshot_cache"].SnapshotCache(bus, _SilentAgent(), timeout=0.05)
    resolver = backend_env["path_resolver"].PathResolver(store)
    orchestrator = backend_env["orchestrator"].Orchestrator(store, cache, resolver)
    monkeypatch.setattr(app_module, "orchestrator", orchestrator)
    return TestClient(app_module.app)


def _fake_classify(monkeypatch, backend_env, answer):
    prompts = []

    async def _classify(title, prompt, settings):
        prompts.append(prompt)
        return answer

    monkeypatch.setattr(backend_env["orchestrator"], "classify", _classify)
    return prompts


def test_healthcheck(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_classification_message(client, backend_env, monkeypatch):
    prompts = _fake_classify(monkeypatch, backend_env, "书签栏/Technology/Backend Development")

    response = client.post(
        "/api/messages",
        json={"action": "getAiClassification", "pageId": "tab-3", "title": "Spring Boot", "url": "https://spring.io"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["categoryPath"] == "Technology/Backend Development"
    assert body["tab"] == {"title": "Spring Boot", "url": "https://spring.io"}
    assert body["analysis"] is None
    assert len(prompts) == 1


def test_classification_without_api_key_reports_error(client, backend_env, monkeypatch):
    prompts = _fake_classify(monkeypatch, backend_env, "unused")
    monkeypatch.setattr(backend_env["settings"].S, "API_KEY", "")

    response = client.post(
        "/api/messages",
        json={"action": "getAiClassification", "title": "Spring Boot", "url": "https://spring.io"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert "API_KEY" in body["message"]
    assert prompts == []


def test_classification_of_internal_page_reports_error(client, backend_env, monkeypatch):
    _fake_classify(monkeypatch, backend_env, "unused")

    response = client.post(
        "/api/messages",
        json={"action": "getAiClassification", "title": "Settings", "url": "chrome://settings"},
    )

    assert response.json() == {"status": "error", "message": "Browser-internal pages cannot be classified."}


def test_save_bookmark_message_and_tree(client):
    response = client.post(
        "/api/messages",
        json={
            "action": "saveBookmark",
            "title": "Spring Boot",
            "url": "https://spring.io",
            "categoryPath": "Bookmarks Bar/Technology/Backend",
        },
    )

    assert response.status_code == 200
    saved = response.json()
    assert saved["status"] == "success"
    assert saved["category"] == "Bookmarks Bar/Technology/Backend"
    assert len(saved["createdFolders"]) == 2
    assert saved["folderId"] == saved["createdFolders"][-1]

    tree = client.post("/api/messages", json={"action": "getBookmarkTree"}).json()
    assert tree["status"] == "success"
    bar = tree["tree"][0]["children"][0]
    technology = bar["children"][0]
    backend = technology["children"][0]
    assert (technology["title"], backend["title"]) == ("Technology", "Backend")
    assert backend["children"][0]["url"] == "https://spring.io"
    assert backend["children"][0]["id"] == saved["bookmarkId"]

    folders = client.get("/api/folders").json()
    assert folders == [
        {"id": technology["id"], "path": "Technology"},
        {"id": backend["id"], "path": "Technology/Backend"},
    ]


def test_save_bookmark_with_missing_parameters(client):
    response = client.post(
        "/api/messages",
        json={"action": "saveBookmark", "title": "Spring Boot", "url": "https://spring.io"},
    )

    assert response.json() == {"status": "error", "message": "Missing parameters for saving bookmark."}


def test_unknown_action_is_rejected(client):
    response = client.post("/api/messages", json={"action": "deleteEverything"})

    assert response.status_code == 422
