"""
Configuration for the retrieval engine.

Every component takes a pydantic config model with sensible defaults, so the
engine works without any configuration at all. load_settings() builds the
full set from environment variables (optionally loaded from .env.local / .env
via python-dotenv):

    MEMORY_SEARCH_CHUNK_SIZE        chunk size in tokens (400)
    MEMORY_SEARCH_CHUNK_OVERLAP     overlap in tokens (80)
    MEMORY_SEARCH_CHARS_PER_TOKEN   characters per token (4)
    MEMORY_SEARCH_MIN_CHUNK_SIZE    minimum chunk size in tokens (50)
    MEMORY_SEARCH_BM25_K1           BM25 term frequency saturation (1.2)
    MEMORY_SEARCH_BM25_B            BM25 length normalization (0.75)
    MEMORY_SEARCH_VECTOR_WEIGHT     hybrid blend weight for vectors (0.7)
    MEMORY_SEARCH_BM25_WEIGHT       hybrid blend weight for BM25 (0.3)
    MEMORY_SEARCH_USE_RRF           "true" to use reciprocal rank fusion (false)
    MEMORY_SEARCH_RRF_K             RRF constant (60)
    MEMORY_SEARCH_HYBRID_MIN_SCORE  hybrid threshold on the fused score (0.01)
    MEMORY_SEARCH_MAX_RESULTS       chunked index default limit (10)
    MEMORY_SEARCH_MIN_SCORE         chunked index default threshold (0.05)
    LOG_LEVEL                       console logging level (INFO)

Configs can be replaced at runtime (see set_config on each component); new
values apply from the next search, nothing needs to be re-indexed.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "MEMORY_SEARCH_"


class ChunkConfig(BaseModel):
    """Text chunker settings (sizes are in estimated tokens)"""

    model_config = ConfigDict(extra="forbid")

    chunk_size: int = Field(400, gt=0, description="Target chunk size in tokens")
    overlap: int = Field(80, ge=0, description="Overlap between consecutive chunks in tokens")
    chars_per_token: float = Field(4, gt=0, description="Approximate characters per token")
    min_chunk_size: int = Field(50, ge=0, description="Smallest chunk worth keeping, in tokens")

    @model_validator(mode="after")
    def _check_overlap(self):
        if self.overlap >= self.chunk_size:
            raise ValueError(
                f"overlap ({self.overlap}) must be smaller than chunk_size ({self.chunk_size})"
            )
        return self


class BM25Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    k1: float = Field(1.2, ge=0, description="Term frequency saturation")
    b: float = Field(0.75, ge=0, le=1, description="Document length normalization")


class HybridSearchConfig(BaseModel):
    """
    Hybrid search settings.

    min_score is applied to the fused score, and the two fusion modes produce
    very different ranges:
    - weighted blend: up to vector_weight + bm25_weight (1.0 with defaults)
    - RRF: at most 2 / (rrf_k + 1), about 0.033 with rrf_k=60

    A threshold tuned for blending is therefore far stricter under RRF; the
    modes are not drop-in interchangeable without revisiting min_score.
    """

    model_config = ConfigDict(extra="forbid")

    vector_weight: float = Field(0.7, ge=0)
    bm25_weight: float = Field(0.3, ge=0)
    bm25_k1: float = Field(1.2, ge=0)
    bm25_b: float = Field(0.75, ge=0, le=1)
    use_rrf: bool = False
    rrf_k: float = Field(60, gt=0)
    min_score: float = 0.01

    def bm25_config(self) -> BM25Config:
        return BM25Config(k1=self.bm25_k1, b=self.bm25_b)


class ChunkedIndexConfig(ChunkConfig):
    """Chunk settings plus default search limits for ChunkedVectorIndex"""

    max_results: int = Field(10, gt=0)
    min_score: float = 0.05

    def chunk_config(self) -> ChunkConfig:
        return ChunkConfig(**{name: getattr(self, name) for name in ChunkConfig.model_fields})


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hybrid: HybridSearchConfig = Field(default_factory=HybridSearchConfig)
    chunked_index: ChunkedIndexConfig = Field(default_factory=ChunkedIndexConfig)
    log_level: str = Field("INFO", description="Console logging level (LOG_LEVEL)")


def updated(config: BaseModel, updates: Dict[str, Any]) -> BaseModel:
    """
    Return a validated copy of a config with some fields replaced.

    Unlike model_copy(update=...), this runs validation, so unknown keys and
    out-of-range values raise pydantic.ValidationError.
    """
    return type(config).model_validate({**config.model_dump(), **updates})


def _read_env(names: Dict[str, str]) -> Dict[str, str]:
    """Collect {field: raw string} for the variables that are set."""
    values = {}
    for field_name, suffix in names.items():
        raw = os.getenv(ENV_PREFIX + suffix)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()
    return values


_CHUNK_VARS = {
    "chunk_size": "CHUNK_SIZE",
    "overlap": "CHUNK_OVERLAP",
    "chars_per_token": "CHARS_PER_TOKEN",
    "min_chunk_size": "MIN_CHUNK_SIZE",
}
_HYBRID_VARS = {
    "vector_weight": "VECTOR_WEIGHT",
    "bm25_weight": "BM25_WEIGHT",
    "bm25_k1": "BM25_K1",
    "bm25_b": "BM25_B",
    "use_rrf": "USE_RRF",
    "rrf_k": "RRF_K",
    "min_score": "HYBRID_MIN_SCORE",
}
_CHUNKED_INDEX_VARS = {
    **_CHUNK_VARS,
    "max_results": "MAX_RESULTS",
    "min_score": "MIN_SCORE",
}


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Loads env_file if given, otherwise .env.local (preferred) or .env from the
    current directory when present. Variables already set in the process
    environment take precedence over file values.

    Args:
        env_file: Optional explicit dotenv file

    Returns:
        Validated Settings (pydantic.ValidationError on bad values)
    """
    if env_file is not None:
        if Path(env_file).exists():
            logger.debug(f"Loading environment from: {env_file}")
            load_dotenv(env_file, override=False)
        else:
            logger.warning(f"Environment file not found: {env_file}")
    else:
        for candidate in (Path(".env.local"), Path(".env")):
            if candidate.exists():
                logger.debug(f"Loading environment from: {candidate}")
                load_dotenv(candidate, override=False)
                break

    # pydantic coerces the raw strings ("400", "0.5", "true") in lax mode
    settings = Settings(
        hybrid=HybridSearchConfig(**_read_env(_HYBRID_VARS)),
        chunked_index=ChunkedIndexConfig(**_read_env(_CHUNKED_INDEX_VARS)),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
    logger.debug(f"Settings loaded: {settings.model_dump()}")
    return settings
