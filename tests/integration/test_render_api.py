"""
Integration tests for the render API.

Tests:
- Successful render returns the MP4 as an attachment
- Temp project carries the composition config
- Validation and config errors return 400 with the error payload
- Engine failures return 500 with the job id
- Health endpoint
"""

from urllib.parse import quote

from httpx import AsyncClient
import pytest


class TestRenderSuccess:
    """Tests for POST /render on the happy path."""

    @pytest.mark.asyncio
    async def test_render_returns_video(self, async_client: AsyncClient, demo_tsx, fake_mp4):
        """Test that the rendered bytes come back as an MP4 attachment."""
        response = await async_client.post("/render", json={"tsx": demo_tsx})

        assert response.status_code == 200
        assert response.headers["content-type"] == "video/mp4"
        job_id = response.headers["x-job-id"]
        assert response.headers["content-disposition"] == f'attachment; filename="{job_id}.mp4"'
        assert response.content == fake_mp4

    @pytest.mark.asyncio
    async def test_render_uses_composition_config(self, async_client: AsyncClient, fake_engine, demo_tsx):
        """Test that the synthesized Root.tsx declares the extracted parameters."""
        response = await async_client.post("/render", json={"tsx": demo_tsx})

        assert response.status_code == 200
        root_tsx = fake_engine.root_tsx
        assert 'id={"demo"}' in root_tsx
        assert "durationInFrames={48}" in root_tsx
        assert "fps={24}" in root_tsx
        assert "width={640}" in root_tsx
        assert "height={480}" in root_tsx
        assert not fake_engine.project_roots[0].exists()

    @pytest.mark.asyncio
    async def test_requested_filename(self, async_client: AsyncClient, demo_tsx):
        response = await async_client.post("/render", json={"tsx": demo_tsx, "filename": "intro.mp4"})

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="intro.mp4"'

    @pytest.mark.asyncio
    async def test_non_ascii_filename(self, async_client: AsyncClient, demo_tsx, fake_mp4):
        """Test that a non-latin-1 name is sent in the RFC 6266 filename* form."""
        response = await async_client.post("/render", json={"tsx": demo_tsx, "filename": "видео.mp4"})

        assert response.status_code == 200
        assert response.headers["content-disposition"] == f"attachment; filename*=utf-8''{quote('видео.mp4')}"
        assert response.content == fake_mp4

    @pytest.mark.asyncio
    async def test_filename_with_spaces(self, async_client: AsyncClient, demo_tsx):
        response = await async_client.post("/render", json={"tsx": demo_tsx, "filename": "my video.mp4"})

        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename*=utf-8''my%20video.mp4"

    @pytest.mark.asyncio
    async def test_source_removed_output_kept(self, async_client: AsyncClient, settings, demo_tsx):
        response = await async_client.post("/render", json={"tsx": demo_tsx})
        job_id = response.headers["x-job-id"]

        assert not (settings.temp_dir / f"{job_id}.tsx").exists()
        assert (settings.output_dir / f"{job_id}.mp4").is_file()


class TestRenderErrors:
    """Tests for error payloads of POST /render."""

    @pytest.mark.asyncio
    async def test_missing_tsx(self, async_client: AsyncClient, fake_engine):
        response = await async_client.post("/render", json={})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert '"tsx" field' in data["message"]
        assert "jobId" not in data
        assert fake_engine.calls == []

    @pytest.mark.asyncio
    async def test_tsx_not_a_string(self, async_client: AsyncClient):
        response = await async_client.post("/render", json={"tsx": 42})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_tsx_too_large(self, async_client: AsyncClient, settings):
        response = await async_client.post("/render", json={"tsx": "x" * (settings.max_source_size + 1)})

        assert response.status_code == 400
        assert response.json()["message"] == "TSX code must be less than 4KB"

    @pytest.mark.asyncio
    async def test_filename_too_long(self, async_client: AsyncClient, fake_engine, demo_tsx):
        """Test that body schema failures use the structured 400 payload."""
        response = await async_client.post("/render", json={"tsx": demo_tsx, "filename": "a" * 300 + ".mp4"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["message"] == "Invalid request body"
        assert data["details"][0]["loc"] == ["body", "filename"]
        assert fake_engine.calls == []

    @pytest.mark.asyncio
    async def test_filename_not_a_string(self, async_client: AsyncClient, demo_tsx):
        response = await async_client.post("/render", json={"tsx": demo_tsx, "filename": 42})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_body_not_an_object(self, async_client: AsyncClient):
        response = await async_client.post("/render", json=["export default 1"])

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert "detail" not in data

    @pytest.mark.asyncio
    async def test_body_not_json(self, async_client: AsyncClient):
        response = await async_client.post(
            "/render", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_config(self, async_client: AsyncClient, no_config_tsx):
        response = await async_client.post("/render", json={"tsx": no_config_tsx})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_composition_config"
        assert "compositionConfig" in data["message"]
        assert data["jobId"]

    @pytest.mark.asyncio
    async def test_engine_failure(self, async_client: AsyncClient, fake_engine, settings, demo_tsx):
        fake_engine.fail_at = "bundle"

        response = await async_client.post("/render", json={"tsx": demo_tsx})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "bundle_failed"
        assert "Can't resolve 'remotion'" in data["message"]
        assert data["jobId"]
        assert list(settings.temp_dir.iterdir()) == []
        assert list(settings.output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_render_failure(self, async_client: AsyncClient, fake_engine, demo_tsx):
        fake_engine.fail_at = "render"

        response = await async_client.post("/render", json={"tsx": demo_tsx})

        assert response.status_code == 500
        assert response.json()["error"] == "render_failed"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "tsx-renderer"
