"""
Local embedding provider using sentence-transformers.

Supports any HuggingFace sentence-embedding model.
Model loads once and stays in memory for fast inference.
"""

import logging
from typing import List

from ..exceptions import ProviderUnavailable
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)


class LocalSentenceTransformerProvider(BaseEmbeddingProvider):
    """
    In-process embeddings (no network dependency).

    Requires the optional `local` extra (sentence-transformers).
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        """
        Initialize local provider.

        Args:
            model_name: HuggingFace model identifier
                - 'all-MiniLM-L6-v2' (90MB, 384 dims, fast)
                - 'all-mpnet-base-v2' (420MB, 768 dims, better quality)
        """
        self.model_name = model_name
        self.model = None  # Lazy loading
        logger.info(f"LocalSentenceTransformerProvider initialized (model will load on first use): {model_name}")

    def _ensure_loaded(self):
        """Lazy load model on first use (avoid startup overhead)"""
        if self.model is None:
            logger.info(f"Loading sentence-transformers model: {self.model_name}")
            try:
                from sentence_transformers import SentenceTransformer
                self.model = SentenceTransformer(self.model_name)
                logger.info(f"Model loaded successfully: {self.model_name}")
            except Exception as e:
                logger.error(f"Failed to load model {self.model_name}: {e}")
                raise ProviderUnavailable(f"Could not load model {self.model_name}") from e

    def embed(self, text: str) -> List[float]:
        self._ensure_loaded()
        try:
            vector = self.model.encode(text, show_progress_bar=False)
        except Exception as e:
            logger.warning(f"Local embedding failed: {e}")
            raise ProviderUnavailable(f"Local embedding failed: {type(e).__name__}") from e
        return [float(x) for x in vector]

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "sentence_transformers",
            "provider": "sentence-transformers",
            "loaded": self.model is not None,
        }

    def close(self):
        """Free model memory."""
        if self.model is not None:
            logger.info(f"Closing model: {self.model_name}")
            del self.model
            self.model = None
