"""
Matcher configuration.

All tuning knobs live in one explicit value object passed to the pipeline
constructor. Thresholds are per ranker variant: lexical, BM25 and embedding
scores live on different scales, so no single accept threshold fits all.

Environment overrides (FAQ_MATCHER_*) are read by MatcherConfig.from_env()
after loading .env.local / .env with python-dotenv.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "FAQ_MATCHER_"


class Variant(str, Enum):
    """Ranking strategy"""
    LEXICAL_ONLY = "lexical_only"          # Jaccard + Levenshtein + keyword/tag match
    BM25_TAGS = "bm25_tags"                # BM25 over question×2 + answer, plus tag boost
    EMBEDDING_HYBRID = "embedding_hybrid"  # Cosine similarity, plus tag boost


class IdfMode(str, Enum):
    SINGLE = "single"          # idf = 1.0, no collection statistics
    COLLECTION = "collection"  # idf from corpus document frequencies


class EmbeddingProviderType(str, Enum):
    HTTP = "http"                                    # Self-hosted /embed service
    VERTEX_AI = "vertex_ai"                          # Google Vertex AI via google-genai
    SENTENCE_TRANSFORMERS = "sentence_transformers"  # Local model
    NONE = "none"


class StrongMatchOverride(BaseModel):
    """
    Bypass of the accept threshold for a confident raw signal.

    The signal is the un-fused tag score (lexical variant) or the raw BM25
    score (BM25 variant). It is compared with a strict '>'.
    """
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    threshold: float = 0.5


class VariantThresholds(BaseModel):
    """Decision thresholds for one ranker variant"""
    model_config = ConfigDict(frozen=True)

    accept_threshold: float = Field(..., ge=0, description="Best score >= this is accepted")
    alternate_threshold: float = Field(..., ge=0, description="Minimum score for alternates on ACCEPT")
    clarify_floor: float = Field(..., ge=0, description="Minimum score for suggestions on CLARIFY")
    strong_match: StrongMatchOverride = Field(default_factory=StrongMatchOverride)


LEXICAL_THRESHOLDS = VariantThresholds(
    accept_threshold=0.25,
    alternate_threshold=0.20,
    clarify_floor=0.10,
    strong_match=StrongMatchOverride(enabled=True, threshold=0.5),
)

BM25_THRESHOLDS = VariantThresholds(
    accept_threshold=0.50,
    alternate_threshold=0.20,
    clarify_floor=0.10,
    strong_match=StrongMatchOverride(enabled=True, threshold=0.5),
)

EMBEDDING_THRESHOLDS = VariantThresholds(
    accept_threshold=0.50,
    alternate_threshold=0.40,
    clarify_floor=0.30,
    strong_match=StrongMatchOverride(enabled=False, threshold=0.5),
)


class MatcherConfig(BaseModel):
    """Configuration value object for MatchPipeline"""
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    variant: Variant = Variant.BM25_TAGS
    max_alternates: int = Field(default=3, ge=0)

    lexical: VariantThresholds = LEXICAL_THRESHOLDS
    bm25: VariantThresholds = BM25_THRESHOLDS
    embedding: VariantThresholds = EMBEDDING_THRESHOLDS

    # Tokenization
    use_stemming: bool = False

    # Lexical similarity
    jaccard_weight: float = Field(default=0.7, ge=0)
    levenshtein_weight: float = Field(default=0.3, ge=0)
    question_similarity_weight: float = Field(default=0.5, ge=0)
    answer_similarity_weight: float = Field(default=0.2, ge=0)
    tag_similarity_weight: float = Field(default=0.3, ge=0)

    # BM25
    bm25_k1: float = Field(default=1.5, gt=0)
    bm25_b: float = Field(default=0.75, ge=0, le=1)
    bm25_avgdl: float = Field(default=50.0, gt=0)
    idf_mode: IdfMode = IdfMode.SINGLE
    question_weight: int = Field(default=2, ge=1)

    # Tag boost
    tag_boost_exact: float = Field(default=0.10, ge=0)
    tag_boost_substring: float = Field(default=0.05, ge=0)
    tag_boost_cap: float = Field(default=0.2, ge=0)

    # Embeddings
    embedding_provider: EmbeddingProviderType = EmbeddingProviderType.NONE
    embedding_service_url: str = "http://localhost:8000"
    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimension: int = Field(default=384, gt=0)
    embedding_timeout_s: float = Field(default=5.0, gt=0)
    embedding_tag_boost: bool = True
    gcp_project_id: Optional[str] = None
    gcp_location: str = "us-central1"

    # Decision policy
    fallback_seed: Optional[int] = None
    track_performance: bool = False

    @model_validator(mode="after")
    def _check_weights(self) -> "MatcherConfig":
        if self.jaccard_weight + self.levenshtein_weight > 1.0 + 1e-9:
            raise ValueError(
                f"jaccard_weight + levenshtein_weight must be <= 1 "
                f"(got {self.jaccard_weight} + {self.levenshtein_weight})"
            )
        return self

    def thresholds_for(self, variant: Variant) -> VariantThresholds:
        if variant == Variant.LEXICAL_ONLY:
            return self.lexical
        if variant == Variant.BM25_TAGS:
            return self.bm25
        return self.embedding

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides) -> "MatcherConfig":
        """
        Build configuration from FAQ_MATCHER_* environment variables.

        Loads .env.local (or the given env_file) first, like the service
        entrypoint does. Unset variables keep their defaults; explicit
        keyword overrides win over the environment.

        Example:
            FAQ_MATCHER_VARIANT=embedding_hybrid
            FAQ_MATCHER_EMBEDDING_PROVIDER=http
            FAQ_MATCHER_EMBEDDING_SERVICE_URL=https://embeddings.internal
            FAQ_MATCHER_EMBEDDING_TIMEOUT_S=3
        """
        if env_file is not None:
            if Path(env_file).exists():
                load_dotenv(env_file, override=False)
        elif (Path.cwd() / ".env.local").exists():
            load_dotenv(Path.cwd() / ".env.local", override=False)
        else:
            load_dotenv(override=False)

        values = {}
        for name, field_info in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or isinstance(field_info.default, BaseModel):
                continue
            values[name] = raw

        for variant_key in ("lexical", "bm25", "embedding"):
            threshold = os.getenv(f"{ENV_PREFIX}{variant_key.upper()}_ACCEPT_THRESHOLD")
            if threshold is not None:
                base = cls.model_fields[variant_key].default
                values[variant_key] = base.model_copy(update={"accept_threshold": float(threshold)})

        values.update(overrides)
        config = cls.model_validate(values)
        logger.info(
            f"Matcher config: variant={config.variant.value}, provider={config.embedding_provider.value}, "
            f"idf_mode={config.idf_mode.value}"
        )
        return config
