"""Unit test fixtures - small in-memory corpora, no network"""

import random
import threading

import pytest

from faq_matcher.config import MatcherConfig, Variant
from faq_matcher.embeddings.base import BaseEmbeddingProvider
from faq_matcher.exceptions import ProviderUnavailable
from faq_matcher.models import FaqRecord

DIMENSION = 384

# Unit vectors along different axes: cosine 1.0 with itself, 0.0 with each other
ABSTRACT_VECTOR = [1.0] + [0.0] * (DIMENSION - 1)
FEES_VECTOR = [0.0, 1.0] + [0.0] * (DIMENSION - 2)
TRAVEL_VECTOR = [0.0, 0.0, 1.0] + [0.0] * (DIMENSION - 3)


@pytest.fixture
def abstract_faq():
    return FaqRecord(
        id=1,
        question="What is an abstract?",
        answer="An abstract is a short summary of your research, up to 300 words.",
        tags=("abstract", "summary"),
    )


@pytest.fixture
def conference_faqs(abstract_faq):
    """Small conference FAQ corpus (ids 1, 20, 21, 30)"""
    return [
        abstract_faq,
        FaqRecord(
            id=20,
            question="What is the registration fee?",
            answer="Registration costs $450 for members and $550 for non-members. "
                   "The fee covers all sessions and catering.",
            tags=("registration", "fee", "cost", "registration fee"),
        ),
        FaqRecord(
            id=21,
            question="Is travel funding available?",
            answer="Travel grants are available for students presenting a poster. "
                   "Apply through the student portal before March.",
            tags=("travel", "grant", "funding"),
        ),
        FaqRecord(
            id=30,
            question="When is the abstract submission deadline?",
            answer="Abstract submissions close on 1 March. Late submissions are not accepted.",
            tags=("deadline", "submission", "abstract"),
        ),
    ]


@pytest.fixture
def embedded_faqs():
    """Corpus with stored embeddings; FAQ #2 has a wrong-dimension vector"""
    return [
        FaqRecord(
            id=1,
            question="What is an abstract?",
            answer="An abstract is a short summary of your research.",
            tags=("abstract", "summary"),
            embedding=tuple(ABSTRACT_VECTOR),
        ),
        FaqRecord(
            id=2,
            question="What should an abstract contain?",
            answer="Background, methods, results and conclusions.",
            tags=("abstract", "content"),
            embedding=tuple([0.5] * 10),
        ),
        FaqRecord(
            id=3,
            question="Is travel funding available?",
            answer="Travel grants are available for students.",
            tags=("travel", "funding"),
            embedding=tuple(TRAVEL_VECTOR),
        ),
    ]


class StaticEmbeddingProvider(BaseEmbeddingProvider):
    """Returns the same vector for every text"""

    def __init__(self, vector):
        self.vector = list(vector)
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        return list(self.vector)

    def get_model_info(self):
        return {"name": "static", "type": "test", "dimension": len(self.vector)}


class BlockingEmbeddingProvider(BaseEmbeddingProvider):
    """Blocks until released (simulates a provider that never answers in time)"""

    def __init__(self, max_wait=5.0):
        self.release = threading.Event()
        self.max_wait = max_wait
        self.started = threading.Event()

    def embed(self, text):
        self.started.set()
        self.release.wait(self.max_wait)
        raise ProviderUnavailable("released")

    def get_model_info(self):
        return {"name": "blocking", "type": "test"}


@pytest.fixture
def static_provider():
    return StaticEmbeddingProvider(ABSTRACT_VECTOR)


@pytest.fixture
def blocking_provider():
    provider = BlockingEmbeddingProvider()
    yield provider
    provider.release.set()


@pytest.fixture
def embedding_config():
    return MatcherConfig(variant=Variant.EMBEDDING_HYBRID, embedding_timeout_s=0.2, fallback_seed=7)


@pytest.fixture
def seeded_rng():
    return random.Random(42)


@pytest.fixture
def abstract_vector():
    return list(ABSTRACT_VECTOR)


@pytest.fixture
def travel_vector():
    return list(TRAVEL_VECTOR)
