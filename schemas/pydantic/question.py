from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from errors import InvalidInputError
from schemas.pydantic.types import NonEmptyStr


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Difficulty"]:
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None

    @classmethod
    def parse(cls, value: "Difficulty | str") -> "Difficulty":
        """
        Convert user input into a Difficulty.

        Raises InvalidInputError for anything outside the closed set, so an
        unknown level is never forwarded to the Reasoning Service.
        """
        if isinstance(value, Difficulty):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise InvalidInputError(
                f"Unknown difficulty {value!r}; expected one of: {allowed}"
            ) from None


class Question(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: NonEmptyStr = Field(
        ..., description="Unique identifier of the question"
    )

    expression: NonEmptyStr = Field(
        ..., description="The problem in LaTeX"
    )

    difficulty: Difficulty = Field(
        ..., description="Difficulty level: Easy | Medium | Hard"
    )

    topic: str = Field(
        ..., description="Topic name (e.g., Linear Equations)"
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_wire_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        question_id = data.get("id")
        if isinstance(question_id, (int, float)) and not isinstance(question_id, bool):
            data["id"] = str(question_id)

        level = data.get("difficulty")
        if isinstance(level, str):
            try:
                data["difficulty"] = Difficulty(level)
            except ValueError:
                pass  # reported by field validation
        return data
