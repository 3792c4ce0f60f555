"""Tests for configuration models."""

import json

import pytest

from witness.models.config import (
    CONFIG_FILENAME,
    EnvironmentConfig,
    VisualEngineConfig,
    WitnessConfig,
)


class TestVisualEngineConfig:
    def test_defaults(self):
        config = VisualEngineConfig()
        assert config.threshold == 0.001
        assert config.pixel_tolerance == 0.1
        assert config.include_aa is True
        assert config.diff_color == (255, 0, 0)

    def test_threshold_out_of_range(self):
        with pytest.raises(ValueError):
            VisualEngineConfig(threshold=1.5)

    def test_bad_colour_rejected(self):
        with pytest.raises(ValueError):
            VisualEngineConfig(diff_color=(300, 0, 0))


class TestWitnessConfig:
    """Tests for the top-level config, its paths and persistence."""

    def test_defaults(self):
        config = WitnessConfig()
        assert config.artifact_root == ".witness/artifacts"
        assert config.paths.baseline == ".witness/artifacts/baselines"
        assert config.server.port == 3000
        assert "desktop-hd" in config.environments
        assert config.api is None

    def test_empty_environments_rejected(self):
        with pytest.raises(ValueError, match="at least one environment"):
            WitnessConfig(environments={})

    def test_max_parallel_must_be_positive(self):
        with pytest.raises(ValueError):
            WitnessConfig(max_parallel_comparisons=0)

    def test_resolve(self, tmp_path, witness_config):
        paths = witness_config.resolve(tmp_path)
        assert paths.baseline == tmp_path / "artifacts" / "baselines"
        assert paths.current == tmp_path / "artifacts" / "current"
        assert paths.diff == tmp_path / "artifacts" / "diffs"
        assert paths.reports == tmp_path / "reports"
        assert paths.artifact_root == tmp_path / "artifacts"

    def test_load_missing_file_returns_defaults(self, tmp_path):
        config = WitnessConfig.load(tmp_path / CONFIG_FILENAME)
        assert config == WitnessConfig()

    def test_save_and_load_roundtrip(self, tmp_path, witness_config):
        path = tmp_path / "nested" / CONFIG_FILENAME
        witness_config.save(path)
        assert path.exists()
        assert WitnessConfig.load(path) == witness_config

    def test_load_partial_file(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(json.dumps({
            "visual_engine": {"threshold": 0.05},
            "environments": {"mobile": {"width": 375, "height": 667}},
        }))
        config = WitnessConfig.load(path)
        assert config.visual_engine.threshold == 0.05
        assert config.environments == {"mobile": EnvironmentConfig(width=375, height=667)}
        assert config.paths.reports == ".witness/reports"

    def test_load_strips_line_comments(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(
            "{\n"
            "  // tighter threshold for the marketing pages\n"
            '  "visual_engine": {"threshold": 0.0}\n'
            "}\n"
        )
        assert WitnessConfig.load(path).visual_engine.threshold == 0.0

    def test_load_bad_json(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Failed to parse"):
            WitnessConfig.load(path)

    def test_load_invalid_values(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(json.dumps({"visual_engine": {"threshold": "high"}}))
        with pytest.raises(ValueError, match="Invalid config"):
            WitnessConfig.load(path)

    def test_load_camel_case_keys(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(json.dumps({
            "artifactRoot": "out",
            "visualEngine": {"threshold": 0.02, "includeAA": False, "diffColor": [0, 0, 255]},
            "environments": {"tablet": {"width": 768, "height": 1024, "deviceScaleFactor": 2}},
            "maxParallelComparisons": 8,
        }))
        config = WitnessConfig.load(path)
        assert config.artifact_root == "out"
        assert config.visual_engine.threshold == 0.02
        assert config.visual_engine.include_aa is False
        assert config.visual_engine.diff_color == (0, 0, 255)
        assert config.environments["tablet"].device_scale_factor == 2
        assert config.max_parallel_comparisons == 8

    def test_save_writes_camel_case(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        WitnessConfig().save(path)
        data = json.loads(path.read_text())
        assert data["artifactRoot"] == ".witness/artifacts"
        assert data["visualEngine"]["includeAA"] is True
        assert data["visualEngine"]["pixelTolerance"] == 0.1
        assert data["environments"]["desktop-hd"]["deviceScaleFactor"] == 1.0
        assert "visual_engine" not in data
