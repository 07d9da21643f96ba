import json

from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Question
from schemas.pydantic.solution import Solution
from schemas.utilities.pydantic_schema_utils import PydanticSchemaUtils


def test_json_schema_uses_wire_names():
    schema = PydanticSchemaUtils.json_schema(Solution)

    assert set(schema["required"]) == {
        "originalExpression",
        "problemCategory",
        "steps",
        "finalAnswer",
        "confidence",
    }
    assert "normalizedExpression" in schema["properties"]
    assert "original_expression" not in schema["properties"]


def test_outline_expands_nested_steps():
    outline = PydanticSchemaUtils.to_descriptive_json(Solution)

    step = outline["steps"]["_type"][0]
    assert step["expression"]["_type"] == "string"
    assert step["rule"]["_type"] == "string | null"
    assert outline["finalAnswer"]["_required"] is True
    assert outline["normalizedExpression"]["_required"] is False


def test_outline_lists_enum_values():
    outline = PydanticSchemaUtils.to_descriptive_json(Question)

    assert outline["difficulty"]["_type"] == "Easy | Medium | Hard"


def test_outline_without_descriptions():
    outline = PydanticSchemaUtils.to_descriptive_json(GradingResult, include_descriptions=False)

    assert outline == {
        "isCorrect": "boolean",
        "score": "number",
        "feedback": "string",
        "correctSolution": "string",
    }


def test_pretty_json_round_trips():
    text = PydanticSchemaUtils.to_descriptive_pretty_json(GradingResult)
    assert json.loads(text)["isCorrect"]["_type"] == "boolean"
