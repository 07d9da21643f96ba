from typing import Optional

from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Difficulty, Question
from schemas.pydantic.solution import Solution
from schemas.utilities.pydantic_schema_utils import PydanticSchemaUtils


def _output_contract(model) -> str:
    return (
        "Output a strict JSON object with exactly this structure "
        "(field descriptions and types shown):\n"
        f"{PydanticSchemaUtils.to_descriptive_pretty_json(model)}"
    )


SOLVER_SYSTEM_POLICY = """
You are an advanced math OCR and solver system.
Act as a backend pipeline which includes:
1. OCR: Extract the mathematical LaTeX from the image.
2. Normalization: Clean up the LaTeX.
3. Parsing: Identify the type of problem (Algebra, Calculus, Matrix, etc.).
4. Solving: Provide a step-by-step solution using symbolic logic.

Ensure all math is valid LaTeX, without markdown code blocks around the
LaTeX strings themselves.
"""

SOLVER_USER_PROMPT = (
    "Analyze this image. Extract the math problem and solve it step-by-step."
)

PRACTICE_SYSTEM_POLICY = """
You are a math tutor. Generate a random math practice problem.
Give it a short unique id and a topic name.
"""

DIFFICULTY_PROMPTS: dict[Difficulty, str] = {
    Difficulty.EASY: (
        "Generate a random simple algebra math practice problem suitable for "
        "beginners (e.g., linear equations, basic factorization, simple arithmetic)."
    ),
    Difficulty.MEDIUM: (
        "Generate a random math practice problem suitable for high school or "
        "early college level (e.g., Calculus limits/derivatives, quadratic "
        "equations, basic matrices)."
    ),
    Difficulty.HARD: (
        "Generate a challenging random math practice problem suitable for "
        "advanced college level (e.g., Differential Equations, Complex "
        "Integrals, Eigenvalues/Eigenvectors, Multivariable Calculus)."
    ),
}

GRADER_SYSTEM_POLICY = """
You are a math tutor grading a student's answer.

Task:
1. Verify if the user's answer is mathematically correct based on the question.
2. If an image is provided, check the steps for logical correctness.
3. Assign a score out of 10 based on correctness and step quality.

For correctSolution use the 'aligned' environment
(\\begin{aligned} ... \\end{aligned}) and double backslashes (\\\\) to put
every single step on its own line.
"""


def build_solver_system_prompt() -> str:
    return f"{SOLVER_SYSTEM_POLICY}\n{_output_contract(Solution)}"


def build_solver_user_prompt() -> str:
    return SOLVER_USER_PROMPT


def build_question_system_prompt() -> str:
    return f"{PRACTICE_SYSTEM_POLICY}\n{_output_contract(Question)}"


def build_question_user_prompt(difficulty: Difficulty) -> str:
    return (
        f"{DIFFICULTY_PROMPTS[difficulty]}\n"
        f'Set "difficulty" to "{difficulty.value}".'
    )


def build_grader_system_prompt() -> str:
    return f"{GRADER_SYSTEM_POLICY}\n{_output_contract(GradingResult)}"


def build_grader_user_prompt(
    *,
    question_expression: str,
    answer_text: Optional[str],
    has_image: bool,
) -> str:
    lines = [f"Question: {question_expression}"]

    if answer_text:
        lines.append(f"User Text Answer: {answer_text}")

    if has_image:
        lines.append(
            "User has also uploaded an image of their solution steps. "
            "Analyze the handwriting to evaluate their process."
        )

    return "\n".join(lines)
