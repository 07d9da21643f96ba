import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import config
from errors import InvalidInputError, MalformedResponseError, MathTutorError
from ingestion.image_ingestion import INVALID_IMAGE_MESSAGE, ImageUpload, is_image_mime
from llm.reasoning_client import ReasoningServiceClient
from pipeline.stage import Stage, can_transition, stage_progress
from schemas.pydantic.solution import Solution

logger = logging.getLogger(__name__)

SOLVE_FAILED_MESSAGE = (
    "Failed to process image. Please try a clearer image "
    "or ensure it contains a valid math problem."
)

ImageHook = Callable[[ImageUpload], Awaitable[None]]
SolutionHook = Callable[[Solution], Awaitable[None]]


@dataclass(frozen=True)
class StageTimings:
    """Latency of the local stages around the service call, in seconds."""

    preprocessing: float = config.PREPROCESSING_DELAY_SEC
    ocr: float = config.OCR_DELAY_SEC
    solving: float = config.SOLVING_DELAY_SEC

    @classmethod
    def zero(cls) -> "StageTimings":
        return cls(preprocessing=0.0, ocr=0.0, solving=0.0)


@dataclass(frozen=True)
class StageHooks:
    """Optional real sub-stage work, awaited before each stage's delay."""

    preprocessing: Optional[ImageHook] = None
    ocr: Optional[ImageHook] = None
    solving: Optional[SolutionHook] = None


@dataclass(frozen=True)
class PipelineSnapshot:
    session: int
    stage: Stage
    solution: Optional[Solution] = None
    error: Optional[str] = None
    image: Optional[ImageUpload] = None

    @property
    def progress(self) -> Dict[Stage, str]:
        return stage_progress(self.stage)

    @property
    def is_busy(self) -> bool:
        return self.stage.is_active


Listener = Callable[[PipelineSnapshot], None]


class SolvePipeline:
    """
    Drives one solve session through
    idle -> preprocessing -> ocr -> parsing -> solving -> complete,
    escaping to error on any failure.

    Consumers read snapshots; only submit() and clear() mutate state.
    """

    def __init__(
        self,
        client: ReasoningServiceClient,
        *,
        timings: Optional[StageTimings] = None,
        hooks: Optional[StageHooks] = None,
    ):
        self.client = client
        self.timings = timings or StageTimings()
        self.hooks = hooks or StageHooks()

        self._session = 0
        self._in_flight = False
        self._stage = Stage.IDLE
        self._solution: Optional[Solution] = None
        self._error: Optional[str] = None
        self._image: Optional[ImageUpload] = None
        self._listeners: List[Listener] = []

        self.stage_history: List[Stage] = [Stage.IDLE]

    # -------------------------
    # Read-only view
    # -------------------------
    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def solution(self) -> Optional[Solution]:
        return self._solution

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            session=self._session,
            stage=self._stage,
            solution=self._solution,
            error=self._error,
            image=self._image,
        )

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    # -------------------------
    # Commands
    # -------------------------
    def clear(self) -> None:
        """Reset to idle, orphaning any in-flight session."""
        self._session += 1
        self._in_flight = False
        self._stage = Stage.IDLE
        self._solution = None
        self._error = None
        self._image = None
        self.stage_history = [Stage.IDLE]

        logger.info("[PIPELINE CLEAR] session=%d", self._session)
        self._notify()

    async def submit(self, image: ImageUpload) -> Optional[Solution]:
        """
        Run a solve session for `image`.

        Returns the published Solution, or None when the session ended in
        the error stage or was orphaned by clear(). Raises
        InvalidInputError for a non-image input or when a session is
        already active or finished without clear().
        """
        if self._in_flight or self._stage.is_active:
            raise InvalidInputError(
                "A solve session is already active; wait for it to finish."
            )
        if self._stage is not Stage.IDLE:
            raise InvalidInputError(
                "The previous solve session has finished; clear it before submitting again."
            )

        if not isinstance(image, ImageUpload) or not is_image_mime(image.mime_type) or not image.data:
            logger.warning("[INVALID INPUT] rejected solve input=%r", image)
            self._error = INVALID_IMAGE_MESSAGE
            self._notify()
            raise InvalidInputError(INVALID_IMAGE_MESSAGE)

        self._session += 1
        session = self._session
        self._in_flight = True
        self._image = image
        self._error = None

        logger.info("[SOLVE START] session=%d image=%r", session, image)

        try:
            return await self._run(session, image)

        except MathTutorError as e:
            if self._is_current(session):
                self._log_failure(session, e)
                self._fail(session)
            return None

        except asyncio.CancelledError:
            if self._is_current(session):
                logger.warning("[SOLVE CANCELLED] session=%d stage=%s", session, self._stage.value)
                self._fail(session)
            raise

        except Exception:
            if self._is_current(session):
                logger.exception("[SOLVE FAIL] session=%d unexpected error", session)
                self._fail(session)
            return None

        finally:
            if self._is_current(session):
                self._in_flight = False

    # -------------------------
    # Internals
    # -------------------------
    async def _run(self, session: int, image: ImageUpload) -> Optional[Solution]:
        self._advance(session, Stage.PREPROCESSING)
        await self._local_stage(self.hooks.preprocessing, image, self.timings.preprocessing)
        if not self._is_current(session):
            return self._orphaned(session)

        self._advance(session, Stage.OCR)
        await self._local_stage(self.hooks.ocr, image, self.timings.ocr)
        if not self._is_current(session):
            return self._orphaned(session)

        self._advance(session, Stage.PARSING)
        solution = await self.client.solve(image.data, image.mime_type)
        if not self._is_current(session):
            return self._orphaned(session)

        self._advance(session, Stage.SOLVING)
        await self._local_stage(self.hooks.solving, solution, self.timings.solving)
        if not self._is_current(session):
            return self._orphaned(session)

        self._solution = solution
        self._advance(session, Stage.COMPLETE)

        logger.info(
            "[SOLVE OK] session=%d category=%s steps=%d",
            session,
            solution.problem_category,
            len(solution.steps),
        )
        return solution

    @staticmethod
    async def _local_stage(hook, arg, delay: float) -> None:
        if hook is not None:
            await hook(arg)
        if delay > 0:
            await asyncio.sleep(delay)

    def _is_current(self, session: int) -> bool:
        return session == self._session

    def _orphaned(self, session: int) -> Optional[Solution]:
        logger.info("[SOLVE DISCARDED] session=%d superseded by session=%d", session, self._session)
        return None

    def _advance(self, session: int, target: Stage) -> None:
        if not can_transition(self._stage, target):
            raise RuntimeError(
                f"Illegal stage transition {self._stage.value} -> {target.value}"
            )

        self._stage = target
        self.stage_history.append(target)
        logger.debug("[STAGE] session=%d stage=%s", session, target.value)
        self._notify()

    def _fail(self, session: int) -> None:
        self._solution = None
        self._error = SOLVE_FAILED_MESSAGE
        if self._stage.is_active:
            self._advance(session, Stage.ERROR)
        else:
            self._notify()

    def _log_failure(self, session: int, error: MathTutorError) -> None:
        if isinstance(error, MalformedResponseError):
            logger.error(
                "[SOLVE FAIL] session=%d stage=%s malformed response field=%s",
                session,
                self._stage.value,
                error.field,
            )
        else:
            logger.error(
                "[SOLVE FAIL] session=%d stage=%s %s: %s",
                session,
                self._stage.value,
                type(error).__name__,
                error.message,
            )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[LISTENER FAIL] listener=%r", listener)
