"""
Shape validation for Reasoning Service responses.

Every payload the controllers receive from the service passes through one of
validate_solution / validate_question / validate_grading. Each returns a
frozen, normalized record or raises MalformedResponseError naming the first
offending field (by its wire name).
"""

import json
import logging
import re
from typing import Any, Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from errors import MalformedResponseError
from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Question
from schemas.pydantic.solution import Solution

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

RawPayload = Union[str, bytes, bytearray, Dict[str, Any]]

ROOT_FIELD = "<root>"

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def parse_payload(raw: RawPayload) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if not isinstance(raw, str):
        raise MalformedResponseError(
            f"expected JSON text, got {type(raw).__name__}", field=ROOT_FIELD
        )

    text = raw.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    if not text:
        raise MalformedResponseError("empty response", field=ROOT_FIELD)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"invalid JSON ({e.msg})", field=ROOT_FIELD) from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(payload).__name__}", field=ROOT_FIELD
        )

    return payload


def _validate(model: Type[T], raw: RawPayload) -> T:
    payload = parse_payload(raw)

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or ROOT_FIELD
        logger.debug(
            "[SHAPE CHECK FAIL] model=%s field=%s errors=%d",
            model.__name__,
            field,
            e.error_count(),
        )
        raise MalformedResponseError(first["msg"], field=field) from e


def validate_solution(raw: RawPayload) -> Solution:
    return _validate(Solution, raw)


def validate_question(raw: RawPayload) -> Question:
    return _validate(Question, raw)


def validate_grading(raw: RawPayload) -> GradingResult:
    return _validate(GradingResult, raw)
