"""
Abstract base class for embedding providers.

All providers must implement this interface to be swappable.
"""

from abc import ABC, abstractmethod
from typing import List


class BaseEmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Contract:
    - embed() returns one vector of the deployment's fixed dimension
    - every failure (timeout, non-2xx, network error, malformed payload)
      raises ProviderUnavailable, never a library-specific exception
    """

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Args:
            text: Text to embed (query or prepared FAQ text)

        Returns:
            Embedding vector

        Raises:
            ProviderUnavailable: Provider could not produce an embedding
        """
        pass

    @abstractmethod
    def get_model_info(self) -> dict:
        """
        Get information about the embedding model.

        Returns:
            Dict with keys: name, type, provider, dimension (when known)
        """
        pass

    def close(self):
        """Optional cleanup (close HTTP sessions, free model memory, etc.)"""
        pass
