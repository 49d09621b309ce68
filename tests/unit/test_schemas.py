"""
Unit tests for pipeline schemas and settings.
"""

import pytest
from pydantic import ValidationError

from tsxrender.core.config import Settings
from tsxrender.core.exceptions import ConfigExtractionError, RenderError
from tsxrender.schemas.render import CompositionConfig, CompositionInfo


class TestCompositionConfig:
    def test_duration_in_frames(self):
        config = CompositionConfig(id="a", durationInSeconds=2, fps=24, width=640, height=480)
        assert config.duration_in_frames == 48

    def test_duration_in_frames_rounds(self):
        config = CompositionConfig(id="a", durationInSeconds=1.5, fps=29.97, width=1, height=1)
        assert config.duration_in_frames == 45

    @pytest.mark.parametrize("field", ["fps", "width", "height", "durationInSeconds"])
    def test_rejects_non_positive(self, field):
        values = {"id": "a", "durationInSeconds": 1, "fps": 1, "width": 1, "height": 1}
        values[field] = 0
        with pytest.raises(ValidationError):
            CompositionConfig(**values)

    @pytest.mark.parametrize("field", ["fps", "durationInSeconds"])
    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_rejects_non_finite(self, field, value):
        values = {"id": "a", "durationInSeconds": 1, "fps": 1, "width": 1, "height": 1}
        values[field] = value
        with pytest.raises(ValidationError):
            CompositionConfig(**values)

    def test_serializes_with_aliases(self):
        config = CompositionConfig(id="a", durationInSeconds=1, fps=1, width=1, height=1)
        dumped = config.model_dump(by_alias=True)
        assert dumped["durationInSeconds"] == 1
        assert dumped["defaultProps"] == {}


class TestCompositionInfo:
    def test_with_overrides(self):
        config = CompositionConfig(id="demo", durationInSeconds=2, fps=24, width=640, height=480)
        info = CompositionInfo(id="demo", durationInFrames=300, fps=30, width=1920, height=1080)

        overridden = info.with_overrides(config)

        assert overridden.duration_in_frames == 48
        assert overridden.fps == 24
        assert (overridden.width, overridden.height) == (640, 480)
        assert info.duration_in_frames == 300


class TestErrorPayload:
    def test_to_dict_omits_empty_fields(self):
        assert RenderError("boom").to_dict() == {"error": "render_failed", "message": "boom"}

    def test_to_dict_full(self):
        error = ConfigExtractionError("no config", details={"file": "a.tsx"}, job_id="123")
        assert error.to_dict() == {
            "error": "invalid_composition_config",
            "message": "no config",
            "details": {"file": "a.tsx"},
            "jobId": "123",
        }


class TestSettings:
    def test_storage_layout(self, tmp_path):
        settings = Settings(storage_path=str(tmp_path))
        assert settings.temp_dir == tmp_path.resolve() / "temp"
        assert settings.output_dir == tmp_path.resolve() / "outputs"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAX_SOURCE_SIZE", "2048")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

        settings = Settings()

        assert settings.max_source_size == 2048
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_node_modules_dir(self, tmp_path):
        settings = Settings(node_project_dir=str(tmp_path))
        assert settings.node_modules_dir == (tmp_path / "node_modules").resolve()
