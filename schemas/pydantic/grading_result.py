from pydantic import BaseModel, ConfigDict, Field, StrictBool


class GradingResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_correct: StrictBool = Field(
        ...,
        alias="isCorrect",
        description="Whether the user's answer is mathematically correct",
    )

    score: float = Field(
        ...,
        strict=True,
        description="Score out of 10 based on correctness and step quality",
    )

    feedback: str = Field(
        ...,
        description="Brief explanation of the grade and any errors found",
    )

    correct_solution: str = Field(
        ...,
        alias="correctSolution",
        description=(
            "The correct solution in LaTeX, using the 'aligned' environment "
            "with every step on its own line"
        ),
    )
