"""
Unit tests for configuration models and environment loading.
"""

import pytest
from pydantic import ValidationError

from memory_search.config import (
    BM25Config,
    ChunkConfig,
    ChunkedIndexConfig,
    HybridSearchConfig,
    Settings,
    load_settings,
    updated,
)


class TestConfigModels:
    """Test defaults and validation"""

    def test_defaults(self):
        assert ChunkConfig() == ChunkConfig(chunk_size=400, overlap=80, chars_per_token=4, min_chunk_size=50)
        assert BM25Config().k1 == 1.2
        assert BM25Config().b == 0.75
        assert HybridSearchConfig().min_score == 0.01

    def test_overlap_must_be_smaller_than_chunk_size(self):
        with pytest.raises(ValidationError, match="overlap"):
            ChunkConfig(chunk_size=100, overlap=100)

    @pytest.mark.parametrize("field,value", [
        ("chunk_size", 0),
        ("overlap", -1),
        ("chars_per_token", 0),
        ("min_chunk_size", -5),
    ])
    def test_invalid_chunk_values(self, field, value):
        with pytest.raises(ValidationError):
            ChunkConfig(**{field: value})

    def test_bm25_b_range(self):
        with pytest.raises(ValidationError):
            BM25Config(b=1.5)
        with pytest.raises(ValidationError):
            BM25Config(k1=-0.1)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            HybridSearchConfig(vector_wieght=0.5)

    def test_updated_validates(self):
        config = ChunkConfig()

        assert updated(config, {"chunk_size": 200}).chunk_size == 200
        with pytest.raises(ValidationError):
            updated(config, {"overlap": 500})
        assert config.chunk_size == 400

    def test_chunk_config_from_chunked_index_config(self):
        config = ChunkedIndexConfig(chunk_size=300, overlap=30, max_results=3)
        chunk_config = config.chunk_config()

        assert isinstance(chunk_config, ChunkConfig)
        assert chunk_config.chunk_size == 300
        assert chunk_config.overlap == 30

    def test_bm25_config_from_hybrid_config(self):
        config = HybridSearchConfig(bm25_k1=2.0, bm25_b=0.3)

        assert config.bm25_config() == BM25Config(k1=2.0, b=0.3)

    def test_settings_sections(self):
        """Only sections something consumes are part of Settings"""
        assert set(Settings.model_fields) == {"hybrid", "chunked_index", "log_level"}


class TestLoadSettings:
    """Test environment variable loading"""

    def test_defaults_without_environment(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = load_settings()

        assert settings.chunked_index == ChunkedIndexConfig()
        assert settings.hybrid == HybridSearchConfig()
        assert settings.log_level == "INFO"

    def test_environment_values(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMORY_SEARCH_CHUNK_SIZE", "300")
        monkeypatch.setenv("MEMORY_SEARCH_CHUNK_OVERLAP", "40")
        monkeypatch.setenv("MEMORY_SEARCH_BM25_K1", "1.5")
        monkeypatch.setenv("MEMORY_SEARCH_USE_RRF", "true")
        monkeypatch.setenv("MEMORY_SEARCH_RRF_K", "30")
        monkeypatch.setenv("MEMORY_SEARCH_MAX_RESULTS", "5")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.chunked_index.chunk_size == 300
        assert settings.chunked_index.overlap == 40
        assert settings.chunked_index.max_results == 5
        assert settings.hybrid.bm25_k1 == 1.5
        assert settings.hybrid.use_rrf is True
        assert settings.hybrid.rrf_k == 30
        assert settings.log_level == "DEBUG"

    def test_separate_thresholds(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMORY_SEARCH_MIN_SCORE", "0.2")
        monkeypatch.setenv("MEMORY_SEARCH_HYBRID_MIN_SCORE", "0.4")

        settings = load_settings()

        assert settings.chunked_index.min_score == 0.2
        assert settings.hybrid.min_score == 0.4

    def test_invalid_environment_value(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMORY_SEARCH_CHUNK_SIZE", "lots")

        with pytest.raises(ValidationError):
            load_settings()

    def test_blank_values_ignored(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMORY_SEARCH_CHUNK_SIZE", "  ")

        assert load_settings().chunked_index.chunk_size == 400

    def test_env_local_file(self, tmp_path, monkeypatch):
        """.env.local in the working directory is loaded"""
        (tmp_path / ".env.local").write_text("MEMORY_SEARCH_CHUNK_SIZE=250\n")
        monkeypatch.chdir(tmp_path)

        assert load_settings().chunked_index.chunk_size == 250

    def test_process_environment_wins(self, tmp_path, monkeypatch):
        env_file = tmp_path / "custom.env"
        env_file.write_text("MEMORY_SEARCH_CHUNK_SIZE=250\nMEMORY_SEARCH_BM25_B=0.5\n")
        monkeypatch.setenv("MEMORY_SEARCH_CHUNK_SIZE", "500")

        settings = load_settings(env_file)

        assert settings.chunked_index.chunk_size == 500
        assert settings.hybrid.bm25_b == 0.5

    def test_missing_env_file(self, tmp_path):
        settings = load_settings(tmp_path / "missing.env")
        assert settings.chunked_index.chunk_size == 400
