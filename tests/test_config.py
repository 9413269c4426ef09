"""
Tests for processing configuration loading and validation.
"""

import pytest

from labdigest.config import PROCESSING_CONFIG_FILE, ProcessingConfig
from labdigest.exceptions import ConfigError


class TestProcessingConfigDefaults:

    def test_defaults(self):
        config = ProcessingConfig()

        assert config.min_section_chars == 100
        assert config.max_section_chars == 3000
        assert config.section_overlap_chars == 500
        assert config.split_ratio == 0.8
        assert config.max_chunk_chars == 4000
        assert config.overlap_sentences == 2
        assert config.context_window == 2
        assert config.max_chunks is None

    def test_shipped_yaml_matches_defaults(self):
        assert ProcessingConfig.load(PROCESSING_CONFIG_FILE) == ProcessingConfig()


class TestProcessingConfigLoad:
    """Test YAML loading."""

    def test_missing_file_uses_defaults(self, tmp_path):
        assert ProcessingConfig.load(tmp_path / "absent.yaml") == ProcessingConfig()

    def test_overrides_from_nested_sections(self, tmp_path):
        config_file = tmp_path / "document_processing.yaml"
        config_file.write_text(
            "segmentation:\n"
            "  max_chunk_chars: 1500\n"
            "  overlap_sentences: 1\n"
            "processing:\n"
            "  max_chunks: 40\n"
            "  unknown_key: ignored\n"
        )

        config = ProcessingConfig.load(config_file)

        assert config.max_chunk_chars == 1500
        assert config.overlap_sentences == 1
        assert config.max_chunks == 40
        assert config.max_section_chars == 3000

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert ProcessingConfig.load(config_file) == ProcessingConfig()

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("segmentation: [unclosed\n")

        with pytest.raises(ConfigError):
            ProcessingConfig.load(config_file)

    def test_invalid_value_in_file(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("segmentation:\n  split_ratio: 1.5\n")

        with pytest.raises(ConfigError):
            ProcessingConfig.load(config_file)


class TestProcessingConfigValidation:

    @pytest.mark.parametrize("overrides", [
        {"max_section_chars": 0},
        {"max_chunk_chars": -1},
        {"split_ratio": 0},
        {"section_overlap_chars": 2400},
        {"overlap_sentences": -1},
        {"continuation_threshold": 1.2},
        {"max_chunks": 0},
        {"reading_chars_per_minute": 0},
    ])
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            ProcessingConfig(**overrides)
