"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - A deterministic fake embedding provider
    - A recording pacer that never sleeps
    - Sample reference documents and pantry inventory
"""

from datetime import date, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from snacksage.errors import EmbeddingError


# =============================================================================
# Test Doubles
# =============================================================================

class FakeEmbedder:
    """
    Embedding provider returning vectors keyed by words in the text.

    The first key (in insertion order) found in the lower-cased text selects
    the vector; texts matching no key get ``default``. Texts containing a word
    from ``fail_on`` raise EmbeddingError.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]],
        default: list[float] | None = None,
        fail_on: tuple[str, ...] = (),
    ) -> None:
        self.vectors = vectors
        self.default = default
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        for word in self.fail_on:
            if word in lowered:
                raise EmbeddingError(f"provider rejected text containing {word!r}", status_code=429)
        for key, vector in self.vectors.items():
            if key in lowered:
                return list(vector)
        if self.default is None:
            raise EmbeddingError(f"no vector for {text!r}")
        return list(self.default)

    async def aembed(self, text: str) -> list[float]:
        return self.embed(text)


class RecordingPacer:
    """Pacer that records waits instead of sleeping."""

    def __init__(self) -> None:
        self.waits = 0

    def wait(self) -> None:
        self.waits += 1


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "GEMINI_API_KEY": "test-api-key",
            "EMBEDDING_MODEL": "text-embedding-004",
            "CHUNK_SIZE": "1000",
            "CHUNK_OVERLAP": "200",
            "EMBEDDING_DELAY_SECONDS": "0.1",
            "ENABLE_TRACING": "false",
        },
    ):
        from snacksage.config import Settings
        yield Settings()


# =============================================================================
# Retrieval Fixtures
# =============================================================================

@pytest.fixture
def make_embedder():
    """Return the FakeEmbedder class so tests can build their own vectors."""
    return FakeEmbedder


@pytest.fixture
def pacer() -> RecordingPacer:
    return RecordingPacer()


@pytest.fixture
def fruit_document():
    """Three one-sentence chunks when indexed with chunk_size=20, overlap=0."""
    from snacksage.retrieval.documents import TextDocument

    return TextDocument("Apples are crisp. Bananas are soft. Cherries are red.")


@pytest.fixture
def fruit_embedder() -> FakeEmbedder:
    """Chunk vectors [1,0], [0,1] and [0.7,0.7]."""
    return FakeEmbedder(
        {
            "apples": [1.0, 0.0],
            "bananas": [0.0, 1.0],
            "cherries": [0.7, 0.7],
        }
    )


@pytest.fixture
def fruit_index(fruit_embedder, fruit_document, pacer):
    """A ready index over the fruit document."""
    from snacksage.retrieval.index import KnowledgeIndex

    index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)
    index.initialize(fruit_document)
    return index


@pytest.fixture
def sample_reference_text() -> str:
    """Provide food-handbook style prose for chunking tests."""
    return (
        "Store fresh herbs like a bouquet of flowers in a glass of water. "
        "Cover them loosely with a plastic bag and keep them in the fridge. "
        "Basil is the exception, since it prefers room temperature! "
        "Cooked rice should be cooled within an hour and eaten within a day. "
        "Why does rice need such care? "
        "Spores of Bacillus cereus can survive cooking and multiply when rice sits warm. "
        "Bread freezes well for up to three months when sliced first. "
        "Toast slices straight from frozen for the best texture. "
        "Bananas ripen faster next to apples because apples release ethylene. "
        "Keep potatoes and onions apart, or the potatoes will sprout sooner. "
        "Leftover stock can be frozen in ice cube trays for small portions. "
        "Label every container with the date it went into the freezer."
    )


@pytest.fixture
def tmp_text_document(tmp_path: Path, sample_reference_text) -> Path:
    """Write the reference text to a temporary .txt file."""
    path = tmp_path / "goodfood.txt"
    path.write_text(sample_reference_text, encoding="utf-8")
    return path


# =============================================================================
# Recipe Fixtures
# =============================================================================

@pytest.fixture
def today() -> date:
    return date(2026, 3, 10)


@pytest.fixture
def sample_inventory(today):
    """Provide a small pantry inventory."""
    from snacksage.recipes.models import InventoryItem, Quantity

    return [
        InventoryItem(
            name="Spinach",
            category="vegetables",
            quantity=Quantity(amount=200, unit="g"),
            expiration_date=today + timedelta(days=1),
        ),
        InventoryItem(
            name="Eggs",
            category="dairy",
            quantity=Quantity(amount=6, unit="pcs"),
            expiration_date=today + timedelta(days=5),
        ),
        InventoryItem(
            name="Tomatoes",
            category="vegetables",
            quantity=Quantity(amount=4, unit="pcs"),
            expiration_date=today - timedelta(days=1),
        ),
        InventoryItem(
            name="Rice",
            category="grains",
            quantity=Quantity(amount=1, unit="kg"),
        ),
    ]


@pytest.fixture
def mock_llm():
    """LLM double with a canned reply."""
    llm = MagicMock()
    llm.invoke.return_value = "Sauté the spinach with garlic, then fold into the eggs."
    return llm


@pytest.fixture
def sample_recipe_reply() -> str:
    """Model reply for a recommendation prompt, wrapped in a code fence."""
    return """```json
[
  {
    "name": "Spinach Omelette",
    "description": "Fluffy eggs folded around garlicky wilted spinach for a quick protein-packed breakfast.",
    "mainIngredients": ["Eggs", "Spinach", "Garlic"],
    "cookingTime": "15 minutes",
    "difficulty": "Easy",
    "cuisine": "French",
    "healthScore": 8,
    "servings": 2
  },
  {
    "name": "Tomato Rice",
    "description": "Comforting rice simmered with tomatoes.",
    "mainIngredients": ["Rice", "Tomatoes", "Onion"],
    "cookingTime": "35 minutes",
    "difficulty": "Medium",
    "cuisine": "Indian"
  },
  {
    "name": "Mystery Dish",
    "description": "Missing its ingredients."
  }
]
```"""
