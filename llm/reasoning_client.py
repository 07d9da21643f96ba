import logging
from typing import Optional, Union

import config
from errors import InvalidInputError, MalformedResponseError
from ingestion.image_ingestion import ImageUpload, from_bytes
from llm.agents.agent import LLMAgent
from llm.prompts import (
    build_grader_system_prompt,
    build_grader_user_prompt,
    build_question_system_prompt,
    build_question_user_prompt,
    build_solver_system_prompt,
    build_solver_user_prompt,
)
from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Difficulty, Question
from schemas.pydantic.solution import Solution
from schemas.validation import validate_grading, validate_question, validate_solution

logger = logging.getLogger(__name__)


class ReasoningServiceClient:
    """
    The three request shapes of the Reasoning Service.

    Each call is one independent round trip: prompt + schema hint out, raw
    JSON back, shape-validated before it is returned. Nothing is retried.
    """

    def __init__(
        self,
        agent: LLMAgent,
        *,
        timeout_sec: Optional[float] = config.DEFAULT_TIMEOUT_SEC,
        log_interval_sec: float = config.LOG_INTERVAL_SEC,
    ):
        self.agent = agent
        self.timeout_sec = timeout_sec
        self.log_interval_sec = log_interval_sec

    # -------------------------
    # Solve
    # -------------------------
    async def solve(self, image_bytes: bytes, mime_type: str) -> Solution:
        image = from_bytes(image_bytes, mime_type)

        raw = await self.agent.run_structured_call(
            system_prompt=build_solver_system_prompt(),
            user_prompt=build_solver_user_prompt(),
            output_model=Solution,
            method_type="solve",
            image=image,
            timeout_sec=self.timeout_sec,
            log_interval_sec=self.log_interval_sec,
        )

        return self._checked("solve", validate_solution, raw)

    # -------------------------
    # Practice: question generation
    # -------------------------
    async def generate_question(
        self,
        difficulty: Union[Difficulty, str, None] = None,
    ) -> Question:
        level = Difficulty.MEDIUM if difficulty is None else Difficulty.parse(difficulty)

        raw = await self.agent.run_structured_call(
            system_prompt=build_question_system_prompt(),
            user_prompt=build_question_user_prompt(level),
            output_model=Question,
            method_type="generate_question",
            timeout_sec=self.timeout_sec,
            log_interval_sec=self.log_interval_sec,
        )

        question = self._checked("generate_question", validate_question, raw)

        if question.difficulty is not level:
            logger.info(
                "[DIFFICULTY MISMATCH] requested=%s returned=%s id=%s",
                level.value,
                question.difficulty.value,
                question.id,
            )

        return question

    # -------------------------
    # Practice: grading
    # -------------------------
    async def grade_answer(
        self,
        question_expression: str,
        answer_text: Optional[str] = "",
        answer_image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> GradingResult:
        image: Optional[ImageUpload] = None
        if answer_image is not None:
            if mime_type is None:
                raise InvalidInputError("An answer image needs a MIME type")
            image = from_bytes(answer_image, mime_type)

        raw = await self.agent.run_structured_call(
            system_prompt=build_grader_system_prompt(),
            user_prompt=build_grader_user_prompt(
                question_expression=question_expression,
                answer_text=answer_text,
                has_image=image is not None,
            ),
            output_model=GradingResult,
            method_type="grade_answer",
            image=image,
            timeout_sec=self.timeout_sec,
            log_interval_sec=self.log_interval_sec,
        )

        return self._checked("grade_answer", validate_grading, raw)

    @staticmethod
    def _checked(method_type: str, validator, raw):
        try:
            return validator(raw)
        except MalformedResponseError as e:
            logger.error(
                "[MALFORMED] method=%s field=%s detail=%s",
                method_type,
                e.field,
                e.message,
            )
            raise
