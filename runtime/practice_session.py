import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from errors import InvalidInputError, MalformedResponseError, MathTutorError
from ingestion.image_ingestion import ImageUpload
from llm.reasoning_client import ReasoningServiceClient
from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Difficulty, Question

logger = logging.getLogger(__name__)

GENERATE_FAILED_MESSAGE = "Could not generate a practice question. Please try again."
GRADE_FAILED_MESSAGE = "Could not grade your answer. Please try again."


@dataclass(frozen=True)
class AnswerDraft:
    text: str = ""
    image: Optional[ImageUpload] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and self.image is None


@dataclass(frozen=True)
class PracticeSnapshot:
    round: int
    difficulty: Difficulty
    active_question: Optional[Question]
    draft: AnswerDraft
    submitted_answer: Optional[AnswerDraft]
    grading_result: Optional[GradingResult]
    loading: bool
    grading: bool
    error: Optional[str]

    @property
    def is_terminal(self) -> bool:
        return self.grading_result is not None


class PracticeSession:
    """
    Owns the practice round lifecycle:
    fetch question -> compose answer -> grade -> show result -> next round.

    Each round carries a token; a response that arrives after its round was
    superseded is dropped instead of overwriting the current round.
    """

    def __init__(
        self,
        client: ReasoningServiceClient,
        *,
        difficulty: Union[Difficulty, str] = Difficulty.MEDIUM,
    ):
        self.client = client

        self._difficulty = Difficulty.parse(difficulty)
        self._round = 0
        self._active_question: Optional[Question] = None
        self._draft = AnswerDraft()
        self._submitted_answer: Optional[AnswerDraft] = None
        self._grading_result: Optional[GradingResult] = None
        self._loading = False
        self._grading = False
        self._error: Optional[str] = None

    # -------------------------
    # Read-only view
    # -------------------------
    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def active_question(self) -> Optional[Question]:
        return self._active_question

    @property
    def grading_result(self) -> Optional[GradingResult]:
        return self._grading_result

    @property
    def draft(self) -> AnswerDraft:
        return self._draft

    def snapshot(self) -> PracticeSnapshot:
        return PracticeSnapshot(
            round=self._round,
            difficulty=self._difficulty,
            active_question=self._active_question,
            draft=self._draft,
            submitted_answer=self._submitted_answer,
            grading_result=self._grading_result,
            loading=self._loading,
            grading=self._grading,
            error=self._error,
        )

    # -------------------------
    # Round lifecycle
    # -------------------------
    async def new_round(
        self,
        difficulty: Union[Difficulty, str, None] = None,
    ) -> Optional[Question]:
        """
        Discard the current round and fetch a fresh question.

        Returns the new Question, or None if this round was itself
        superseded before the question arrived. Service failures leave no
        active question, set the error message and are re-raised.
        """
        level = self._difficulty if difficulty is None else Difficulty.parse(difficulty)

        self._difficulty = level
        self._round += 1
        round_token = self._round

        self._active_question = None
        self._draft = AnswerDraft()
        self._submitted_answer = None
        self._grading_result = None
        self._grading = False
        self._error = None
        self._loading = True

        logger.info("[ROUND START] round=%d difficulty=%s", round_token, level.value)

        try:
            question = await self.client.generate_question(level)

        except MathTutorError as e:
            if not self._is_current(round_token):
                logger.debug("[STALE] round=%d generate failure dropped", round_token)
                return None
            self._error = GENERATE_FAILED_MESSAGE
            self._log_failure("generate_question", round_token, e)
            raise

        finally:
            if self._is_current(round_token):
                self._loading = False

        if not self._is_current(round_token):
            logger.debug(
                "[STALE] round=%d question=%s dropped (current round=%d)",
                round_token,
                question.id,
                self._round,
            )
            return None

        self._active_question = question
        logger.info(
            "[ROUND READY] round=%d question=%s topic=%s",
            round_token,
            question.id,
            question.topic,
        )
        return question

    async def change_difficulty(
        self,
        level: Union[Difficulty, str],
    ) -> Optional[Question]:
        """
        Switch the difficulty preference.

        An untouched round (no answer typed or drawn, not graded) is replaced
        right away; otherwise the new level only applies to the next round,
        so work in progress is never thrown away.
        """
        level = Difficulty.parse(level)
        if level is self._difficulty:
            return None

        self._difficulty = level

        if self._is_untouched():
            return await self.new_round(level)

        logger.info(
            "[DIFFICULTY DEFERRED] round=%d next=%s", self._round, level.value
        )
        return None

    # -------------------------
    # Answer composition
    # -------------------------
    def update_draft(
        self,
        *,
        text: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> AnswerDraft:
        self._ensure_open()

        if image is not None and not isinstance(image, ImageUpload):
            raise InvalidInputError("Please upload a valid image file.")

        changes = {}
        if text is not None:
            changes["text"] = text
        if image is not None:
            changes["image"] = image

        self._draft = replace(self._draft, **changes)
        return self._draft

    def clear_draft_image(self) -> AnswerDraft:
        self._ensure_open()
        self._draft = replace(self._draft, image=None)
        return self._draft

    async def submit_answer(
        self,
        text: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> Optional[GradingResult]:
        """
        Grade the answer for the active question.

        With no arguments the current draft is submitted. Returns the
        GradingResult, or None if the round was superseded meanwhile.
        """
        question = self._active_question
        if question is None:
            raise InvalidInputError("There is no active question to answer.")
        self._ensure_open()
        if self._grading:
            raise InvalidInputError("This answer is already being graded.")

        answer = self._draft
        if text is not None or image is not None:
            if image is not None and not isinstance(image, ImageUpload):
                raise InvalidInputError("Please upload a valid image file.")
            answer = AnswerDraft(text=text or "", image=image)

        if answer.is_empty:
            raise InvalidInputError("Type an answer or attach an image of your work.")

        # a rejected call leaves the draft untouched
        self._draft = answer

        round_token = self._round
        self._grading = True
        self._submitted_answer = answer
        self._error = None

        logger.info(
            "[GRADE START] round=%d question=%s text=%s image=%s",
            round_token,
            question.id,
            bool(answer.text.strip()),
            answer.image is not None,
        )

        try:
            result = await self.client.grade_answer(
                question.expression,
                answer.text.strip(),
                answer.image.data if answer.image else None,
                answer.image.mime_type if answer.image else None,
            )

        except MathTutorError as e:
            if not self._is_current(round_token):
                logger.debug("[STALE] round=%d grading failure dropped", round_token)
                return None
            self._submitted_answer = None
            self._error = GRADE_FAILED_MESSAGE
            self._log_failure("grade_answer", round_token, e)
            raise

        finally:
            if self._is_current(round_token):
                self._grading = False

        if not self._is_current(round_token):
            logger.debug("[STALE] round=%d grading result dropped", round_token)
            return None

        self._grading_result = result
        logger.info(
            "[GRADE OK] round=%d correct=%s score=%s",
            round_token,
            result.is_correct,
            result.score,
        )
        return result

    # -------------------------
    # Internals
    # -------------------------
    def _is_current(self, round_token: int) -> bool:
        return round_token == self._round

    def _is_untouched(self) -> bool:
        return (
            self._grading_result is None
            and self._submitted_answer is None
            and self._draft.is_empty
        )

    def _ensure_open(self) -> None:
        if self._grading_result is not None:
            raise InvalidInputError(
                "This round is already graded. Start a new round to continue."
            )

    @staticmethod
    def _log_failure(method_type: str, round_token: int, error: MathTutorError) -> None:
        if isinstance(error, MalformedResponseError):
            logger.error(
                "[PRACTICE FAIL] round=%d method=%s malformed response field=%s",
                round_token,
                method_type,
                error.field,
            )
        elif isinstance(error, InvalidInputError):
            logger.warning(
                "[INVALID INPUT] round=%d method=%s %s",
                round_token,
                method_type,
                error.message,
            )
        else:
            logger.error(
                "[PRACTICE FAIL] round=%d method=%s %s: %s",
                round_token,
                method_type,
                type(error).__name__,
                error.message,
            )
