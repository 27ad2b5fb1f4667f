"""Assessment assembly engine.

Combines the question bank with on-demand AI generation. Each requested
subject runs its own pipeline:

    bank fetch -> select -> fallback orchestrator (shortfall only) -> assemble

Subject pipelines share nothing except the primary provider's key pool, run
concurrently up to ``max_concurrent_subjects``, and are put back in input
order before the payload is returned.
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError

from .assembler import build, summarize
from .bank.database import QuestionBankRepository
from .bank.source import BankQuery, BankSource
from .config import Settings, get_settings
from .generation.orchestrator import FallbackOrchestrator
from .generation.primary import PrimaryController
from .generation.secondary import SecondaryController
from .infrastructure.credential_pool import ModelPool, ProviderKeyPool
from .infrastructure.graceful_failure import graceful_failure
from .logging_config import caller_context, request_id_context
from .models import (
    AssembledItem,
    AssessmentPayload,
    DifficultyTier,
    Question,
    QuestionRequest,
    SubjectSummary,
)
from .providers.groq_provider import GroqProvider
from .selection import select

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_SUBJECTS = 4

SubjectEntry = Union[QuestionRequest, dict]


class InvalidAssessmentRequest(ValueError):
    """The subject list is missing, empty or malformed."""


@dataclass
class SubjectResult:
    """Output of one subject pipeline."""

    items: List[AssembledItem]
    summary: SubjectSummary


class AssessmentEngine:
    """Assembles the question set for a timed multiple-choice assessment."""

    def __init__(
        self,
        bank_source: BankSource,
        orchestrator: FallbackOrchestrator,
        max_concurrent_subjects: int = DEFAULT_MAX_CONCURRENT_SUBJECTS,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the engine.

        Args:
            bank_source: Reads candidate questions from the bank
            orchestrator: Fills shortfalls from the AI providers
            max_concurrent_subjects: Subject pipelines allowed to run at once
            rng: Random source for selection (tests pass a seeded one)
        """
        if max_concurrent_subjects < 1:
            raise ValueError("max_concurrent_subjects must be at least 1")
        self.bank_source = bank_source
        self.orchestrator = orchestrator
        self.max_concurrent_subjects = max_concurrent_subjects
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        repository: Optional[BankQuery] = None,
        key_pool: Optional[ProviderKeyPool] = None,
    ) -> "AssessmentEngine":
        """Build an engine wired to the configured bank and providers.

        Args:
            config: Settings to use (default: the global settings)
            repository: Bank query implementation (default: SQLAlchemy
                repository on ``config.database_url``)
            key_pool: Shared Gemini key pool; pass the same pool to every
                engine in the process so rotation is process-wide

        Returns:
            Configured AssessmentEngine
        """
        config = config or get_settings()

        if repository is None:
            repository = QuestionBankRepository(config.database_url)
        bank_source = BankSource(
            repository,
            timeout_seconds=config.bank_timeout_seconds,
            overfetch_factor=config.bank_overfetch_factor,
        )

        primary: Optional[PrimaryController] = None
        if key_pool is None and config.gemini_api_keys:
            key_pool = ProviderKeyPool(config.gemini_api_keys, provider_name="google")
        if key_pool is not None:
            primary = PrimaryController(
                model=config.gemini_model,
                timeout_seconds=config.provider_timeout_seconds,
            )
        else:
            logger.warning("No Gemini API keys configured; using Groq only")

        groq: Optional[GroqProvider] = None
        if config.groq_api_key:
            groq = GroqProvider(
                api_key=config.groq_api_key,
                model=config.groq_reliable_model,
                request_timeout=config.provider_timeout_seconds,
            )
        else:
            logger.warning("No Groq API key configured; fallback leg disabled")

        secondary = SecondaryController(
            provider=groq,
            model_pool=ModelPool(
                models=config.groq_model_list,
                reliable_model=config.groq_reliable_model,
            ),
            timeout_seconds=config.provider_timeout_seconds,
        )

        orchestrator = FallbackOrchestrator(
            secondary=secondary, primary=primary, key_pool=key_pool
        )
        return cls(
            bank_source=bank_source,
            orchestrator=orchestrator,
            max_concurrent_subjects=config.max_concurrent_subjects,
        )

    @staticmethod
    def parse_requests(subjects: Optional[Iterable[SubjectEntry]]) -> List[QuestionRequest]:
        """Validate the caller's subject list.

        Accepts QuestionRequest objects or dicts with ``subject_name`` (or
        ``name``) and ``count``.

        Raises:
            InvalidAssessmentRequest: If the list is missing, empty or invalid
        """
        if subjects is None or isinstance(subjects, (str, bytes, dict)):
            raise InvalidAssessmentRequest(
                "Invalid subjects format. subjects must be a list of "
                "{subject_name, count} objects"
            )
        try:
            entries = list(subjects)
        except TypeError as e:
            raise InvalidAssessmentRequest(
                f"Invalid subjects format: {subjects!r} is not a list"
            ) from e
        if not entries:
            raise InvalidAssessmentRequest("Please select at least one subject")

        requests: List[QuestionRequest] = []
        for entry in entries:
            if isinstance(entry, QuestionRequest):
                requests.append(entry)
                continue
            if not isinstance(entry, dict):
                raise InvalidAssessmentRequest(f"Invalid subject entry: {entry!r}")
            data: dict[str, Any] = dict(entry)
            if "subject_name" not in data and "name" in data:
                data["subject_name"] = data.pop("name")
            try:
                requests.append(QuestionRequest(**data))
            except (ValidationError, TypeError) as e:
                raise InvalidAssessmentRequest(
                    f"Invalid subject entry {entry!r}: {e}"
                ) from e
        return requests

    async def assemble(
        self,
        subjects: Iterable[SubjectEntry],
        difficulty: DifficultyTier = DifficultyTier.MEDIUM,
        total_time: Optional[int] = None,
        caller_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AssessmentPayload:
        """Assemble the question set for an assessment.

        Args:
            subjects: (subject, count) requests, in the order to present them
            difficulty: Difficulty tier for generated questions
            total_time: Assessment time budget in minutes, echoed back
            caller_id: Caller identity, used for logging only
            cancel_event: When set, unfinished subjects are abandoned and
                the subjects assembled so far are returned

        Returns:
            AssessmentPayload; subjects the engine could not fully supply have
            fewer items than their ``subject_total``

        Raises:
            InvalidAssessmentRequest: If the subject list is malformed
        """
        requests = self.parse_requests(subjects)

        request_token = request_id_context.set(uuid.uuid4().hex[:12])
        caller_token = caller_context.set(caller_id)
        try:
            subject_counts = ", ".join(f"{r.subject_name}={r.count}" for r in requests)
            logger.info(
                f"Assembling assessment: {subject_counts} "
                f"(difficulty={difficulty.value})"
            )

            semaphore = asyncio.Semaphore(self.max_concurrent_subjects)

            async def run(request: QuestionRequest) -> SubjectResult:
                async with semaphore:
                    return await self._assemble_subject(request, difficulty)

            tasks = [asyncio.create_task(run(r)) for r in requests]
            cancelled = await self._wait_for_subjects(tasks, cancel_event)

            payload = AssessmentPayload(
                total_time=total_time,
                caller_name=caller_id,
                difficulty=difficulty,
                cancelled=cancelled,
            )
            for request, task in zip(requests, tasks):
                if task.cancelled():
                    logger.info(f"Skipped {request.subject_name}: assembly cancelled")
                    continue
                error = task.exception()
                if error is not None:
                    logger.error(
                        f"Subject pipeline for {request.subject_name} failed: {error}"
                    )
                    payload.subjects.append(summarize(request.subject_name, [], request.count))
                    continue
                result = task.result()
                payload.questions.extend(result.items)
                payload.subjects.append(result.summary)

            logger.info(
                f"Assembled {len(payload.questions)} questions across "
                f"{len(payload.subjects)} subjects"
                + (" (cancelled)" if cancelled else "")
            )
            return payload
        finally:
            caller_context.reset(caller_token)
            request_id_context.reset(request_token)

    async def _wait_for_subjects(
        self,
        tasks: List["asyncio.Task[SubjectResult]"],
        cancel_event: Optional[asyncio.Event],
    ) -> bool:
        """Wait for every subject task, or until ``cancel_event`` is set.

        Returns:
            True if assembly was cancelled before all subjects finished
        """
        gathered = asyncio.gather(*tasks, return_exceptions=True)
        if cancel_event is None:
            await gathered
            return False

        waiter = asyncio.create_task(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {gathered, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            gathered.cancel()
            waiter.cancel()
            raise

        if gathered in done:
            waiter.cancel()
            return False

        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        await gathered
        return bool(pending)

    async def _assemble_subject(
        self, request: QuestionRequest, difficulty: DifficultyTier
    ) -> SubjectResult:
        """Run one subject's pipeline."""
        subject = request.subject_name

        bank_questions: List[Question] = []
        with graceful_failure(
            "query question bank", logger, context={"subject": subject}
        ):
            bank_questions = await self.bank_source.fetch(subject, request.count)
        selected = select(bank_questions, request.count, self.rng)

        ai_questions: List[Question] = []
        shortfall = request.count - len(selected)
        if shortfall > 0:
            logger.info(f"Generating {shortfall} AI questions for {subject}...")
            generated = await self.orchestrator.generate(subject, shortfall, difficulty)
            ai_questions = select(generated, shortfall, self.rng)

        items = build(subject, selected, ai_questions, request.count)
        summary = summarize(subject, items, request.count)
        if summary.shortfall:
            logger.warning(
                f"{subject}: delivered {summary.delivered}/{summary.requested} questions",
                extra={"subject": subject},
            )
        return SubjectResult(items=items, summary=summary)
