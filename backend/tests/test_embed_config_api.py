"""
GET /proxy and the admin URL API
"""
from urlconnect.services.errors import UrlStoreError
from urlconnect.services.url_store import MemoryUrlStore, get_url_store
from urlconnect.main import app


class BrokenStore(MemoryUrlStore):
    async def get_url(self):
        raise UrlStoreError("redis down")

    async def set_url(self, url):
        raise UrlStoreError("redis down")


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_config_without_url_signals_not_configured(client):
    response = client.get("/proxy")
    assert response.status_code == 404
    assert response.json() == {"error": "No URL configured", "code": "url_not_configured"}


def test_config_returns_configured_url(client):
    client.post("/api/url", json={"url": "https://example.com/landing"})

    response = client.get("/proxy")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    data = response.json()
    assert data["url"] == "https://example.com/landing"
    assert data["timestamp"]


def test_config_store_failure_is_a_500(client):
    app.dependency_overrides[get_url_store] = lambda: BrokenStore()
    response = client.get("/proxy")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch URL"}


def test_admin_url_roundtrip(client, url_store):
    assert client.get("/api/url").json() == {"url": ""}

    response = client.post("/api/url", json={"url": " https://example.com/a "})
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "URL updated successfully",
        "url": "https://example.com/a",
    }
    assert client.get("/api/url").json() == {"url": "https://example.com/a"}

    response = client.delete("/api/url")
    assert response.json()["success"] is True
    assert client.get("/api/url").json() == {"url": ""}
    assert client.get("/proxy").status_code == 404


def test_admin_requires_a_url(client):
    response = client.post("/api/url", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "URL is required"


def test_admin_rejects_malformed_url(client, url_store):
    response = client.post("/api/url", json={"url": "example.com/no-scheme"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid URL format"
    assert client.get("/api/url").json() == {"url": ""}


def test_admin_store_failure_is_a_500(client):
    app.dependency_overrides[get_url_store] = lambda: BrokenStore()
    response = client.post("/api/url", json={"url": "https://example.com/"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update URL"
