"""Shared fixtures for integration tests

Integration tests use REAL embedding backends:
- A running embedding service (POST /embed, GET /health)
- A local sentence-transformers model (downloaded on first run)

NO MOCKS - these tests verify actual vectors end to end.

IMPORTANT: Integration tests FAIL LOUDLY if not configured.
They are deselected by default (addopts = -m 'not integration').

To run integration tests:
    export FAQ_MATCHER_EMBEDDING_SERVICE_URL=http://localhost:8000
    pytest -m integration tests/integration/

Requirements:
- FAQ_MATCHER_EMBEDDING_SERVICE_URL (optional, defaults to http://localhost:8000)
- The `local` extra (sentence-transformers) for local model tests
- Network access to the embedding service / HuggingFace
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from faq_matcher.embeddings import HttpEmbeddingProvider
from faq_matcher.models import FaqRecord

# Load .env.local for integration tests (same as the scripts do)
env_local = Path(__file__).parent.parent.parent / ".env.local"
if env_local.exists():
    load_dotenv(env_local, override=True)


@pytest.fixture(scope="session")
def embedding_service():
    """
    HTTP provider pointed at the configured embedding service.

    FAILS LOUDLY if the service is not reachable - integration tests should
    not be silently skipped!
    """
    url = os.getenv("FAQ_MATCHER_EMBEDDING_SERVICE_URL", "http://localhost:8000")
    provider = HttpEmbeddingProvider(url, timeout=10.0)

    status = provider.check_status()
    if status["status"] != "online":
        provider.close()
        pytest.fail(
            f"\n\nEmbedding service not available at {url}: {status['message']}\n"
            "Start the service or set FAQ_MATCHER_EMBEDDING_SERVICE_URL.\n"
        )

    yield provider
    provider.close()


@pytest.fixture
def conference_faqs():
    return [
        FaqRecord(
            id=1,
            question="What is an abstract?",
            answer="An abstract is a short summary of your research, up to 300 words.",
            tags=("abstract", "summary"),
        ),
        FaqRecord(
            id=20,
            question="What is the registration fee?",
            answer="Registration costs $450 for members and $550 for non-members.",
            tags=("registration", "fee", "cost"),
        ),
        FaqRecord(
            id=21,
            question="Is travel funding available?",
            answer="Travel grants are available for students presenting a poster.",
            tags=("travel", "grant", "funding"),
        ),
    ]
