import pytest
from httpx import AsyncClient, ASGITransport

import main
from conftest import solid_rasterizer
from main import app
from memento import MementoComposer
from memento.assets import AssetLoader

TRACKS = [
    {"artist": "Deadmau5", "title": "Strobe", "mix": "Club Edit"},
    {"artist": "Bicep", "title": "Glue"},
]


@pytest.fixture(autouse=True)
def stub_composer(monkeypatch, tmp_path):
    composer = MementoComposer(
        assets=AssetLoader(tmp_path),
        primary_rasterizer=solid_rasterizer,
        fallback_rasterizer=solid_rasterizer,
    )
    monkeypatch.setattr(main, "composer", composer)
    return composer


@pytest.mark.asyncio
async def test_health():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_templates_endpoint():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/memento/templates")

    assert response.status_code == 200
    data = response.json()
    assert [t["id"] for t in data["templates"]] == ["portrait", "landscape", "square", "story"]
    assert {"id": "afterparty", "text": "DJ Ziff Afterparty Setlist"} in data["subtitles"]
    assert data["max_tracks"] == 100


@pytest.mark.asyncio
async def test_parse_tracklist_endpoint():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/parse-tracklist", json={
            "text": "01. Deadmau5 – Strobe (Club Edit)\n02. Bicep - Glue"
        })

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["tracks"][0] == {"artist": "Deadmau5", "title": "Strobe", "mix": "Club Edit"}


@pytest.mark.asyncio
async def test_preview_endpoint():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/preview", json={
            "templateId": "portrait",
            "partyName": "Rooftop Sessions",
            "tracks": TRACKS,
        })

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_preview_allows_empty_request():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/preview", json={"templateId": "story"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_render_endpoint():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/render", json={
            "templateId": "square",
            "partyName": "Café Night!",
            "subtitleVariant": "afterparty",
            "tracks": TRACKS,
        })

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert 'filename="cafe-night.png"' in response.headers["content-disposition"]


@pytest.mark.asyncio
async def test_render_validation():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/render", json={
            "templateId": "portrait",
            "partyName": "   ",
            "tracks": [],
        })

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "Party name is required" in detail
    assert "At least one track is required" in detail


@pytest.mark.asyncio
async def test_render_too_many_tracks():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/render", json={
            "templateId": "portrait",
            "partyName": "Marathon",
            "tracks": [{"artist": "A", "title": str(i)} for i in range(101)],
        })

    assert response.status_code == 400
    assert response.json()["detail"] == "Max 100 tracks"


@pytest.mark.asyncio
async def test_unknown_template():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/preview", json={"templateId": "billboard"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown template: billboard"


@pytest.mark.asyncio
async def test_malformed_photo():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/preview", json={
            "templateId": "portrait",
            "photo": {"dataUrl": "data:image/png;base64"},
        })

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_render_request_validation():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/memento/render", json={
            "partyName": "Missing template id"
        })

    assert response.status_code == 422  # Validation error
