from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schemas.pydantic.types import NonEmptyStr


class Step(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    expression: NonEmptyStr = Field(
        ..., description="LaTeX of the expression after this step"
    )

    explanation: str = Field(
        ..., description="Explanation of the operation (e.g., 'Apply Chain Rule')"
    )

    rule: Optional[str] = Field(
        default=None, description="Name of the rule used, if any"
    )


class Solution(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_expression: NonEmptyStr = Field(
        ...,
        alias="originalExpression",
        description="The raw LaTeX extracted from the image",
    )

    normalized_expression: str = Field(
        default="",
        alias="normalizedExpression",
        description="The normalized LaTeX",
    )

    problem_category: str = Field(
        ...,
        alias="problemCategory",
        description="Category of the problem (e.g., Differential Equation, Linear Algebra)",
    )

    steps: List[Step] = Field(
        ..., description="Ordered solution steps, first to last"
    )

    final_answer: NonEmptyStr = Field(
        ...,
        alias="finalAnswer",
        description="The final result in LaTeX",
    )

    confidence: float = Field(
        ...,
        strict=True,
        allow_inf_nan=False,
        description="Confidence in the recognition and solution (0-1)",
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_normalized_expression(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        normalized = data.get("normalizedExpression", data.get("normalized_expression"))
        if isinstance(normalized, str) and normalized.strip():
            return data

        original = data.get("originalExpression", data.get("original_expression"))
        return {**data, "normalizedExpression": original if isinstance(original, str) else ""}

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        # advisory only
        return min(max(value, 0.0), 1.0)

    @property
    def display_expression(self) -> str:
        return self.normalized_expression or self.original_expression
