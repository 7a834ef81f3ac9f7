"""Tests for model-based relevance confirmation."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from signal_risk.ingestion.schemas import TriageStatus
from signal_risk.triage.config import TriageConfig
from signal_risk.triage.relevance import RelevanceClassifier, RelevanceJudgment
from tests.conftest import llm_response, make_flagged, make_headline


@pytest.fixture
def classifier(mock_llm) -> RelevanceClassifier:
    return RelevanceClassifier(client=mock_llm)


class TestClassify:
    """Tests for RelevanceClassifier.classify."""

    async def test_parses_model_json(self, classifier, mock_llm):
        mock_llm.complete.return_value = llm_response(
            '{"score": 9, "reason": "Direct supply disruption", "relevant": true, "assets": ["LITHIUM"]}'
        )

        judgment = await classifier.classify(make_flagged(), "Lithium")

        assert judgment.score == 9.0
        assert judgment.relevant is True
        assert judgment.assets == ["lithium"]
        assert judgment.fallback is False

    async def test_uses_triage_purpose(self, classifier, mock_llm):
        mock_llm.complete.return_value = llm_response('{"score": 8, "relevant": true}')

        await classifier.classify(make_flagged(), "Lithium")

        assert mock_llm.complete.await_args.kwargs["purpose"] == "triage"

    async def test_fenced_json_is_accepted(self, classifier, mock_llm):
        mock_llm.complete.return_value = llm_response(
            '```json\n{"score": 3, "reason": "Tangential", "relevant": false}\n```'
        )

        judgment = await classifier.classify(make_flagged(), "Lithium")

        assert judgment.score == 3.0
        assert judgment.relevant is False

    async def test_score_is_clamped(self, classifier, mock_llm):
        mock_llm.complete.return_value = llm_response('{"score": 42, "relevant": true}')

        judgment = await classifier.classify(make_flagged(), "Lithium")

        assert judgment.score == 10.0

    async def test_service_error_falls_back_to_keyword_score(self, classifier, mock_llm):
        mock_llm.complete.side_effect = RuntimeError("503 from upstream")

        judgment = await classifier.classify(make_flagged(confidence=0.8), "Lithium")

        assert judgment.fallback is True
        assert judgment.score == 8.0
        assert judgment.relevant is True
        assert judgment.assets == ["lithium"]

    async def test_low_confidence_fallback_is_not_relevant(self, classifier, mock_llm):
        mock_llm.complete.side_effect = RuntimeError("boom")

        judgment = await classifier.classify(make_flagged(confidence=0.5), "Lithium")

        # Fallback requires confidence strictly above 0.5
        assert judgment.relevant is False

    async def test_timeout_falls_back(self, mock_llm):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        mock_llm.complete = AsyncMock(side_effect=slow)
        classifier = RelevanceClassifier(client=mock_llm, config=TriageConfig(relevance_timeout=1.0))
        classifier._config.relevance_timeout = 0.01

        judgment = await classifier.classify(make_flagged(), "Lithium")

        assert judgment.fallback is True
        assert "timed out" in judgment.reason

    async def test_unparseable_response_falls_back(self, classifier, mock_llm):
        mock_llm.complete.return_value = llm_response("I cannot help with that.")

        judgment = await classifier.classify(make_flagged(), "Lithium")

        assert judgment.fallback is True


class TestClassifyBatch:
    """Tests for RelevanceClassifier.classify_batch."""

    async def test_one_judgment_per_headline(self, classifier, mock_llm):
        mock_llm.complete.side_effect = [
            llm_response('{"score": 9, "relevant": true}'),
            RuntimeError("rate limited"),
            llm_response("not json"),
        ]
        headlines = [make_flagged(f"h-{i}") for i in range(3)]

        judgments = await classifier.classify_batch(headlines, {"lithium": "Lithium"})

        assert set(judgments) == {"h-0", "h-1", "h-2"}
        assert judgments["h-0"].fallback is False
        assert judgments["h-1"].fallback is True
        assert judgments["h-2"].fallback is True

    async def test_empty_batch_makes_no_calls(self, classifier, mock_llm):
        assert await classifier.classify_batch([]) == {}
        mock_llm.complete.assert_not_called()


class TestApplyJudgments:
    """Tests for RelevanceClassifier.apply_judgments."""

    def _judgment(self, score: float, relevant: bool) -> RelevanceJudgment:
        return RelevanceJudgment(score=score, reason="test", relevant=relevant)

    def test_relevant_raises_confidence(self, classifier):
        headline = make_flagged(confidence=0.6)

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(9, True)})

        assert updated.confidence == pytest.approx(0.9)
        assert updated.ai_score == 9
        assert updated.ai_reason == "test"
        assert updated.triage_status == TriageStatus.FLAGGED

    def test_relevant_never_lowers_confidence(self, classifier):
        headline = make_flagged(confidence=0.95)

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(7, True)})

        assert updated.confidence == pytest.approx(0.95)

    def test_irrelevant_halves_confidence_but_keeps_status(self, classifier):
        headline = make_flagged(confidence=0.8)

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(2, False)})

        assert updated.confidence == pytest.approx(0.4)
        assert updated.triage_status == TriageStatus.FLAGGED

    def test_strong_agreement_promotes_noise(self, classifier):
        headline = make_headline(confidence=0.3)

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(8, True)})

        assert updated.triage_status == TriageStatus.FLAGGED

    def test_weak_agreement_does_not_promote(self, classifier):
        headline = make_headline(confidence=0.3)

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(6.5, True)})

        assert updated.triage_status == TriageStatus.NOISE

    def test_headlines_without_judgment_are_unchanged(self, classifier):
        headline = make_flagged("other")

        [updated] = classifier.apply_judgments([headline], {"h-1": self._judgment(9, True)})

        assert updated is headline
