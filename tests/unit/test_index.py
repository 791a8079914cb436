"""Unit tests for retrieval.index module."""

import math
import threading
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from snacksage.errors import EmbeddingError, IndexBuildError, NotInitializedError
from snacksage.retrieval.documents import TextDocument
from snacksage.retrieval.index import FixedDelayPacer, KnowledgeIndex, cosine_similarities
from snacksage.retrieval.models import Chunk, IndexState, RetrievalResult

FIVE_SENTENCES = TextDocument(
    "Apples are crisp. Bananas are soft. Durians smell. Cherries are red. Apples again."
)


@pytest.mark.unit
class TestCosineSimilarities:
    """Tests for cosine_similarities function."""

    def test_identical_and_orthogonal(self):
        vectors = np.array([[1.0, 0.0], [0.0, 1.0]])
        scores = cosine_similarities([1.0, 0.0], vectors)
        assert scores.tolist() == pytest.approx([1.0, 0.0])

    def test_opposite_vectors_score_minus_one(self):
        scores = cosine_similarities([1.0, 1.0], np.array([[-2.0, -2.0]]))
        assert scores[0] == pytest.approx(-1.0)

    def test_scale_invariant(self):
        vectors = np.array([[3.0, 4.0]])
        assert cosine_similarities([6.0, 8.0], vectors)[0] == pytest.approx(1.0)

    def test_zero_magnitude_row_scores_zero(self):
        """Test that a zero vector scores 0.0 rather than NaN."""
        scores = cosine_similarities([1.0, 0.0], np.array([[0.0, 0.0], [1.0, 0.0]]))
        assert scores.tolist() == [0.0, pytest.approx(1.0)]

    def test_zero_magnitude_query_scores_zero(self):
        scores = cosine_similarities([0.0, 0.0], np.array([[1.0, 0.0], [0.0, 1.0]]))
        assert scores.tolist() == [0.0, 0.0]


@pytest.mark.unit
class TestFixedDelayPacer:
    """Tests for FixedDelayPacer."""

    def test_sleeps_configured_delay(self):
        slept = []
        pacer = FixedDelayPacer(delay_seconds=0.25, sleep=slept.append)
        pacer.wait()
        assert slept == [0.25]

    def test_zero_delay_does_not_sleep(self):
        slept = []
        FixedDelayPacer(delay_seconds=0, sleep=slept.append).wait()
        assert slept == []


@pytest.mark.unit
class TestKnowledgeIndexLifecycle:
    """Tests for index state transitions."""

    def test_new_index_is_uninitialized(self, fruit_embedder, pacer):
        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        assert index.state == IndexState.UNINITIALIZED
        assert not index.is_ready()
        assert index.size == 0
        assert index.dimension is None
        assert index.chunks == ()

    def test_query_before_initialize_raises(self, fruit_embedder, pacer):
        """Test that retrieval before a build raises NotInitializedError."""
        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(NotInitializedError):
            index.retrieve_relevant("apples", 3)
        assert fruit_embedder.calls == []

    def test_initialize_builds_ready_index(self, fruit_index, fruit_embedder):
        assert fruit_index.state == IndexState.READY
        assert fruit_index.is_ready()
        assert fruit_index.size == 3
        assert fruit_index.dimension == 2
        assert [c.text for c in fruit_index.chunks] == [
            "Apples are crisp.",
            "Bananas are soft.",
            "Cherries are red.",
        ]
        assert fruit_embedder.calls == [c.text for c in fruit_index.chunks]

    def test_chunk_ids_are_sequential(self, fruit_index):
        assert [c.id for c in fruit_index.chunks] == [0, 1, 2]

    def test_pacer_waits_between_embedding_calls(self, fruit_index, pacer):
        """Test that the pacer runs between calls, not before the first one."""
        assert pacer.waits == 2

    def test_invalid_overlap_rejected(self, fruit_embedder):
        with pytest.raises(ValueError):
            KnowledgeIndex(fruit_embedder, chunk_size=100, chunk_overlap=100)

    def test_accepts_path_source(self, tmp_text_document, pacer, make_embedder):
        embedder = make_embedder({}, default=[0.5, 0.5])
        index = KnowledgeIndex(embedder, chunk_size=200, chunk_overlap=0, pacer=pacer)

        index.initialize(str(tmp_text_document))

        assert index.is_ready()
        assert index.size > 1


@pytest.mark.unit
class TestKnowledgeIndexBuildFailures:
    """Tests for failed builds."""

    def test_embedding_failure_marks_index_failed(self, pacer, make_embedder):
        """Test that a failed first build leaves no snapshot and state FAILED."""
        embedder = make_embedder({}, default=[1.0, 0.0], fail_on=("durians",))
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError) as exc_info:
            index.initialize(FIVE_SENTENCES)

        assert exc_info.value.chunk_index == 2
        assert exc_info.value.total_chunks == 5
        assert isinstance(exc_info.value.__cause__, EmbeddingError)
        assert index.state == IndexState.FAILED
        assert not index.is_ready()
        assert index.last_error is exc_info.value
        assert len(embedder.calls) == 3

        with pytest.raises(NotInitializedError):
            index.retrieve_relevant("apples", 1)

    def test_failed_rebuild_keeps_previous_snapshot(self, fruit_index, fruit_embedder):
        """Test that a rebuild failing on chunk 3 leaves the old index serving."""
        fruit_embedder.fail_on = ("durians",)

        with pytest.raises(IndexBuildError):
            fruit_index.initialize(FIVE_SENTENCES)

        assert fruit_index.state == IndexState.READY
        assert fruit_index.size == 3
        assert fruit_index.last_error.chunk_index == 2

        results = fruit_index.retrieve_relevant("apples", 1)
        assert results[0].text == "Apples are crisp."

    def test_missing_document_fails_before_embedding(self, tmp_path, fruit_embedder, pacer):
        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError) as exc_info:
            index.initialize(tmp_path / "missing.pdf")

        assert exc_info.value.chunk_index is None
        assert fruit_embedder.calls == []
        assert index.state == IndexState.FAILED

    def test_empty_document_fails(self, fruit_embedder, pacer):
        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError) as exc_info:
            index.initialize(TextDocument("   \n  "))

        assert exc_info.value.total_chunks == 0
        assert fruit_embedder.calls == []

    def test_inconsistent_dimensions_fail(self, pacer, make_embedder):
        embedder = make_embedder({"apples": [1.0, 0.0], "bananas": [1.0, 0.0, 0.0]})
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError) as exc_info:
            index.initialize(TextDocument("Apples are crisp. Bananas are soft."))

        assert exc_info.value.chunk_index == 1
        assert index.state == IndexState.FAILED

    def test_unexpected_source_error_becomes_build_error(self, fruit_embedder, pacer):
        """Test that any exception from the source is wrapped and state is settled."""

        class BrokenSource:
            def extract_text(self):
                raise RuntimeError("disk on fire")

        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError) as exc_info:
            index.initialize(BrokenSource())

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert index.state == IndexState.FAILED
        assert index.last_error is exc_info.value

    def test_unexpected_embedder_error_keeps_previous_snapshot(self, fruit_index, fruit_embedder):
        fruit_embedder.embed = MagicMock(side_effect=RuntimeError("provider bug"))

        with pytest.raises(IndexBuildError):
            fruit_index.initialize(TextDocument("Bananas are soft."))

        assert fruit_index.state == IndexState.READY
        assert fruit_index.size == 3

    def test_failed_build_is_recorded_in_trace(self, pacer, make_embedder):
        embedder = make_embedder({}, default=[1.0, 0.0], fail_on=("durians",))
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with patch("snacksage.retrieval.index.record_exception") as mock_record, patch(
            "snacksage.retrieval.index.add_span_attributes"
        ) as mock_attributes:
            with pytest.raises(IndexBuildError) as exc_info:
                index.initialize(FIVE_SENTENCES)

        mock_record.assert_called_once_with(exc_info.value)
        mock_attributes.assert_called_once_with(chunk_index=2, total_chunks=5)

    def test_empty_embedding_fails(self, pacer, make_embedder):
        embedder = make_embedder({}, default=[])
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(IndexBuildError):
            index.initialize(TextDocument("Apples are crisp."))


@pytest.mark.unit
class TestKnowledgeIndexRebuild:
    """Tests for rebuilding an index."""

    def test_rebuild_replaces_contents(self, fruit_index, fruit_embedder):
        fruit_index.initialize(TextDocument("Bananas are soft."))

        assert fruit_index.size == 1
        assert fruit_index.chunks[0].text == "Bananas are soft."

    def test_rebuild_never_reuses_ids(self, fruit_index, fruit_embedder):
        """Test that ids continue after the previous build."""
        fruit_index.initialize(TextDocument("Bananas are soft. Apples are crisp."))
        assert [c.id for c in fruit_index.chunks] == [3, 4]

    def test_failed_build_does_not_consume_ids(self, fruit_index, fruit_embedder):
        fruit_embedder.fail_on = ("durians",)
        with pytest.raises(IndexBuildError):
            fruit_index.initialize(FIVE_SENTENCES)

        fruit_embedder.fail_on = ()
        fruit_index.initialize(TextDocument("Cherries are red."))
        assert fruit_index.chunks[0].id == 3

    def test_successful_rebuild_clears_last_error(self, pacer, make_embedder):
        embedder = make_embedder({}, default=[1.0, 0.0], fail_on=("durians",))
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)
        with pytest.raises(IndexBuildError):
            index.initialize(FIVE_SENTENCES)

        index.initialize(TextDocument("Apples are crisp."))

        assert index.state == IndexState.READY
        assert index.last_error is None

    def test_concurrent_builds_are_serialized(self, pacer, make_embedder):
        """Test that a second build waits for the first and then replaces it."""
        started = threading.Event()
        release = threading.Event()

        class BlockingEmbedder(make_embedder):
            def embed(self, text):
                if not started.is_set():
                    started.set()
                    release.wait(timeout=5)
                return super().embed(text)

        embedder = BlockingEmbedder({}, default=[1.0, 0.0])
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        first = threading.Thread(target=index.initialize, args=(TextDocument("Apples. Bananas."),))
        second = threading.Thread(target=index.initialize, args=(TextDocument("Cherries. Dates."),))
        first.start()
        started.wait(timeout=5)
        second.start()
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert embedder.calls == ["Apples. Bananas.", "Cherries. Dates."]
        assert index.state == IndexState.READY
        assert [(c.id, c.text) for c in index.chunks] == [(1, "Cherries. Dates.")]


@pytest.mark.unit
class TestKnowledgeIndexRetrieval:
    """Tests for retrieve_relevant and get_context."""

    def test_ranks_by_similarity(self, fruit_index):
        results = fruit_index.retrieve_relevant("apples please", 2)

        assert [r.text for r in results] == ["Apples are crisp.", "Cherries are red."]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(1 / math.sqrt(2))

    def test_returns_retrieval_results(self, fruit_index):
        results = fruit_index.retrieve_relevant("bananas", 1)

        assert isinstance(results[0], RetrievalResult)
        assert results[0].chunk_id == 1
        assert results[0].display_similarity == "1.000"

    def test_top_k_larger_than_index_returns_all(self, fruit_index):
        results = fruit_index.retrieve_relevant("apples", 10)
        assert len(results) == 3

    def test_scores_are_non_increasing(self, fruit_index):
        results = fruit_index.retrieve_relevant("cherries", 3)
        scores = [r.similarity for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_non_positive_top_k_returns_empty_without_embedding(
        self, fruit_index, fruit_embedder, top_k
    ):
        calls_before = len(fruit_embedder.calls)

        assert fruit_index.retrieve_relevant("apples", top_k) == []
        assert len(fruit_embedder.calls) == calls_before

    def test_ties_broken_by_ascending_id(self, pacer, make_embedder):
        """Test that equal scores come back in chunk id order."""
        embedder = make_embedder({"query": [1.0, 0.0]}, default=[1.0, 0.0])
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)
        index.initialize(TextDocument("Apples are crisp. Bananas are soft. Cherries are red."))

        results = index.retrieve_relevant("query", 3)
        assert [r.chunk_id for r in results] == [0, 1, 2]

    def test_zero_magnitude_chunk_scores_zero(self, pacer, make_embedder):
        embedder = make_embedder(
            {"query": [1.0, 0.0], "apples": [0.0, 0.0], "bananas": [-1.0, 0.0]},
        )
        index = KnowledgeIndex(embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)
        index.initialize(TextDocument("Apples are crisp. Bananas are soft."))

        results = index.retrieve_relevant("query", 2)
        assert [r.text for r in results] == ["Apples are crisp.", "Bananas are soft."]
        assert results[0].similarity == 0.0
        assert results[1].similarity == pytest.approx(-1.0)

    def test_query_dimension_mismatch_raises(self, fruit_index, fruit_embedder):
        fruit_embedder.vectors["odd"] = [1.0, 0.0, 0.0]

        with pytest.raises(EmbeddingError):
            fruit_index.retrieve_relevant("odd query", 2)

    def test_query_embedding_failure_propagates(self, fruit_index, fruit_embedder):
        fruit_embedder.fail_on = ("boom",)

        with pytest.raises(EmbeddingError):
            fruit_index.retrieve_relevant("boom", 2)
        assert fruit_index.is_ready()

    def test_get_context_defaults_to_configured_top_k(self, fruit_index):
        from snacksage.config import settings

        results = fruit_index.get_context("apples")
        assert len(results) == min(settings.retrieval_top_k, fruit_index.size)

    def test_get_context_matches_retrieve_relevant(self, fruit_index):
        assert fruit_index.get_context("bananas", 2) == fruit_index.retrieve_relevant("bananas", 2)

    @pytest.mark.asyncio
    async def test_aretrieve_relevant(self, fruit_index):
        results = await fruit_index.aretrieve_relevant("apples please", 2)

        assert [r.text for r in results] == ["Apples are crisp.", "Cherries are red."]

    @pytest.mark.asyncio
    async def test_aget_context_before_initialize_raises(self, fruit_embedder, pacer):
        index = KnowledgeIndex(fruit_embedder, chunk_size=20, chunk_overlap=0, pacer=pacer)

        with pytest.raises(NotInitializedError):
            await index.aget_context("apples")


@pytest.mark.unit
class TestChunk:
    """Tests for the Chunk dataclass."""

    def test_create_converts_embedding_to_floats(self):
        chunk = Chunk.create(7, "Salt the water.", [1, 2, 3])

        assert chunk.embedding == (1.0, 2.0, 3.0)
        assert chunk.dimension == 3

    def test_blank_text_rejected(self):
        with pytest.raises(ValueError):
            Chunk.create(0, "   ", [1.0])

    def test_empty_embedding_rejected(self):
        with pytest.raises(ValueError):
            Chunk.create(0, "Salt the water.", [])
