"""Tests for the fallback orchestrator."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from cbt_assembler.generation.errors import ProviderError, ProviderErrorKind
from cbt_assembler.generation.normalizer import GeneratedBatch
from cbt_assembler.generation.orchestrator import FallbackOrchestrator
from cbt_assembler.infrastructure.credential_pool import ProviderKeyPool
from cbt_assembler.models import DifficultyTier, QuestionOrigin


def _quota() -> ProviderError:
    return ProviderError(ProviderErrorKind.QUOTA_EXCEEDED, "google", "quota")


def _malformed() -> ProviderError:
    return ProviderError(ProviderErrorKind.MALFORMED_RESPONSE, "google", "bad json")


def _unavailable() -> ProviderError:
    return ProviderError(ProviderErrorKind.UNAVAILABLE, "google", "timeout")


@pytest.fixture
def primary():
    controller = Mock()
    controller.generate = AsyncMock()
    return controller


@pytest.fixture
def secondary():
    controller = Mock()
    controller.provider_name = "groq"
    controller.generate = AsyncMock(
        return_value=GeneratedBatch(provider_id="groq", model=None)
    )
    return controller


def _batch(provider_id, records, model="m"):
    return GeneratedBatch(provider_id=provider_id, model=model, records=records)


class TestFallbackOrchestrator:
    """Tests for FallbackOrchestrator.generate."""

    def test_primary_requires_key_pool(self, primary, secondary):
        with pytest.raises(ValueError, match="key pool"):
            FallbackOrchestrator(secondary=secondary, primary=primary)

    @pytest.mark.asyncio
    async def test_primary_success(self, primary, secondary, records_factory):
        primary.generate.return_value = _batch(
            "google", records_factory(4), "gemini-2.0-flash"
        )
        pool = ProviderKeyPool(["key-1", "key-2"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Biology", 4, DifficultyTier.MEDIUM)

        assert len(questions) == 4
        assert all(q.origin == QuestionOrigin.AI for q in questions)
        assert all(q.provider_id == "google" for q in questions)
        assert all(q.model == "gemini-2.0-flash" for q in questions)
        primary.generate.assert_awaited_once_with(
            "Biology", 4, DifficultyTier.MEDIUM, "key-1"
        )
        secondary.generate.assert_not_awaited()
        assert pool.rotations == 0

    @pytest.mark.asyncio
    async def test_quota_rotates_and_retries_once(
        self, primary, secondary, records_factory
    ):
        """Quota on the first key rotates once and the retry uses the second key."""
        primary.generate.side_effect = [_quota(), _batch("google", records_factory(2))]
        pool = ProviderKeyPool(["key-1", "key-2"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Biology", 2)

        assert len(questions) == 2
        assert pool.rotations == 1
        assert pool.current() == "key-2"
        keys_used = [c.args[3] for c in primary.generate.await_args_list]
        assert keys_used == ["key-1", "key-2"]
        secondary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quota_twice_falls_back_after_one_rotation(
        self, primary, secondary, records_factory
    ):
        primary.generate.side_effect = [_quota(), _quota()]
        secondary.generate.return_value = _batch("groq", records_factory(2))
        pool = ProviderKeyPool(["key-1", "key-2"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Biology", 2)

        assert pool.rotations == 1
        assert primary.generate.await_count == 2
        secondary.generate.assert_awaited_once()
        assert all(q.provider_id == "groq" for q in questions)

    @pytest.mark.asyncio
    async def test_quota_with_single_key_skips_rotation(
        self, primary, secondary, records_factory
    ):
        """With one key there is no rotation and no primary retry."""
        primary.generate.side_effect = _quota()
        secondary.generate.return_value = _batch("groq", records_factory(3))
        pool = ProviderKeyPool(["only-key"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Physics", 3)

        assert pool.rotations == 0
        assert primary.generate.await_count == 1
        assert len(questions) == 3
        assert all(q.provider_id == "groq" for q in questions)

    @pytest.mark.asyncio
    async def test_malformed_falls_back_without_rotation(
        self, primary, secondary, records_factory
    ):
        primary.generate.side_effect = _malformed()
        secondary.generate.return_value = _batch("groq", records_factory(2))
        pool = ProviderKeyPool(["key-1", "key-2"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Physics", 2)

        assert pool.rotations == 0
        assert pool.cursor == 0
        assert primary.generate.await_count == 1
        assert all(q.provider_id == "groq" for q in questions)

    @pytest.mark.asyncio
    async def test_unavailable_falls_back_without_rotation(
        self, primary, secondary, records_factory
    ):
        primary.generate.side_effect = _unavailable()
        secondary.generate.return_value = _batch("groq", records_factory(1))
        pool = ProviderKeyPool(["key-1", "key-2"])
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        questions = await orchestrator.generate("Physics", 1)

        assert pool.rotations == 0
        assert len(questions) == 1

    @pytest.mark.asyncio
    async def test_unexpected_primary_exception_falls_back(
        self, primary, secondary, records_factory
    ):
        primary.generate.side_effect = RuntimeError("bug")
        secondary.generate.return_value = _batch("groq", records_factory(1))
        orchestrator = FallbackOrchestrator(
            secondary, primary, ProviderKeyPool(["key-1"])
        )

        questions = await orchestrator.generate("Physics", 1)

        assert len(questions) == 1

    @pytest.mark.asyncio
    async def test_everything_fails_returns_empty(self, primary, secondary):
        """Both legs failing yields no questions and no exception."""
        primary.generate.side_effect = _unavailable()
        orchestrator = FallbackOrchestrator(
            secondary, primary, ProviderKeyPool(["key-1", "key-2"])
        )

        questions = await orchestrator.generate("Physics", 5)

        assert questions == []

    @pytest.mark.asyncio
    async def test_secondary_exception_swallowed(self, secondary):
        secondary.generate.side_effect = RuntimeError("bug")
        orchestrator = FallbackOrchestrator(secondary)

        assert await orchestrator.generate("Physics", 2) == []

    @pytest.mark.asyncio
    async def test_no_primary_goes_straight_to_secondary(
        self, secondary, records_factory
    ):
        secondary.generate.return_value = _batch("groq", records_factory(2))
        orchestrator = FallbackOrchestrator(secondary)

        questions = await orchestrator.generate("Physics", 2, DifficultyTier.HARD)

        assert len(questions) == 2
        secondary.generate.assert_awaited_once_with("Physics", 2, DifficultyTier.HARD)

    @pytest.mark.asyncio
    async def test_invalid_records_not_backfilled(
        self, primary, secondary, records_factory, record_factory
    ):
        """Discarded records reduce the count; nothing is regenerated."""
        records = records_factory(2) + [record_factory(5, options=["a", "b"])]
        primary.generate.return_value = _batch("google", records)
        orchestrator = FallbackOrchestrator(
            secondary, primary, ProviderKeyPool(["key-1"])
        )

        questions = await orchestrator.generate("Physics", 3)

        assert len(questions) == 2
        assert primary.generate.await_count == 1
        secondary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_count(self, primary, secondary):
        orchestrator = FallbackOrchestrator(
            secondary, primary, ProviderKeyPool(["key-1"])
        )

        assert await orchestrator.generate("Physics", 0) == []
        primary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shared_pool_rotates_once_for_concurrent_quota(
        self, primary, secondary, records_factory
    ):
        """Two requests rejected on the same key rotate the shared pool once."""
        pool = ProviderKeyPool(["key-1", "key-2"])
        gate = asyncio.Event()

        async def generate(subject, count, difficulty, api_key):
            if api_key == "key-1":
                await gate.wait()
                raise _quota()
            return _batch("google", records_factory(count))

        primary.generate.side_effect = generate
        orchestrator = FallbackOrchestrator(secondary, primary, pool)

        tasks = [
            asyncio.create_task(orchestrator.generate("Physics", 1)),
            asyncio.create_task(orchestrator.generate("Biology", 1)),
        ]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert pool.rotations == 1
        assert pool.current() == "key-2"
        assert all(len(r) == 1 for r in results)
