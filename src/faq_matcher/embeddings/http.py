"""
HTTP embedding provider for a self-hosted embedding service.

Wire format:
    POST {base_url}/embed   {"text": "..."}  →  {"embedding": [0.12, ...]}
    GET  {base_url}/health  →  200 with service info

The service typically runs all-MiniLM-L6-v2 (384 dimensions).
"""

import logging
from typing import List, Optional

import requests

from ..exceptions import ProviderUnavailable
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT_S = 2.0


class HttpEmbeddingProvider(BaseEmbeddingProvider):
    """
    Embedding provider backed by a JSON HTTP service.

    Example:
        >>> provider = HttpEmbeddingProvider("http://localhost:8000", timeout=5)
        >>> vector = provider.embed("How do I submit an abstract?")
        >>> len(vector)
        384
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 5.0,
        model_name: str = "all-MiniLM-L6-v2",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize HTTP provider.

        Args:
            base_url: Service root URL (without /embed)
            timeout: Request timeout in seconds
            model_name: Model served by the service (informational)
            session: Optional requests session (connection pooling, tests)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.model_name = model_name
        self.session = session or requests.Session()
        logger.info(f"HttpEmbeddingProvider initialized: {self.base_url} (timeout={timeout}s)")

    def embed(self, text: str) -> List[float]:
        url = f"{self.base_url}/embed"
        try:
            response = self.session.post(url, json={"text": text}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Embedding service request failed: {e}")
            raise ProviderUnavailable(f"Embedding service unreachable: {type(e).__name__}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"Embedding service HTTP error: {response.status_code}")
            raise ProviderUnavailable(f"Embedding service returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Embedding service returned non-JSON body ({len(response.content)} bytes)")
            raise ProviderUnavailable("Embedding service returned invalid JSON") from e

        embedding = payload.get("embedding") if isinstance(payload, dict) else None
        if not isinstance(embedding, list) or not embedding:
            logger.warning("Embedding service invalid response: missing 'embedding' array")
            raise ProviderUnavailable("Embedding service response has no embedding array")

        try:
            return [float(x) for x in embedding]
        except (TypeError, ValueError) as e:
            raise ProviderUnavailable("Embedding service returned non-numeric values") from e

    def check_status(self) -> dict:
        """
        Probe the service health endpoint.

        Returns:
            Dict with status ("online" | "offline" | "error"), message, url
            and service_info (online only). Never raises.
        """
        url = f"{self.base_url}/health"
        try:
            response = self.session.get(url, timeout=HEALTH_TIMEOUT_S)
        except requests.RequestException as e:
            return {
                "status": "offline",
                "message": f"Cannot connect to embedding service: {e}",
                "url": self.base_url,
            }

        if response.status_code == 200:
            try:
                service_info = response.json()
            except ValueError:
                service_info = None
            return {
                "status": "online",
                "message": "Embedding service is running",
                "url": self.base_url,
                "service_info": service_info,
            }

        return {
            "status": "error",
            "message": f"Embedding service returned HTTP {response.status_code}",
            "url": self.base_url,
        }

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "http",
            "provider": "embedding-service",
            "url": self.base_url,
        }

    def close(self):
        """Close pooled connections."""
        self.session.close()
