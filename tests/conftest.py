import asyncio
import json
from typing import Any, List

import pytest

from ingestion.image_ingestion import ImageUpload
from llm.agents.agent import LLMAgent
from llm.reasoning_client import ReasoningServiceClient
from schemas.dataclass.agent_config import LLMAgentConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

SOLUTION_PAYLOAD = {
    "originalExpression": "2x + 3 = 7",
    "normalizedExpression": "2x+3=7",
    "problemCategory": "Linear Equation",
    "steps": [
        {"expression": "2x = 4", "explanation": "Subtract 3 from both sides", "rule": "Subtraction Property"},
        {"expression": "x = 2", "explanation": "Divide both sides by 2"},
    ],
    "finalAnswer": "x = 2",
    "confidence": 0.97,
}

QUESTION_PAYLOAD = {
    "id": "q1",
    "expression": "2x+3=7",
    "difficulty": "Easy",
    "topic": "Linear Equations",
}

GRADING_PAYLOAD = {
    "isCorrect": True,
    "score": 10,
    "feedback": "Correct!",
    "correctSolution": "x=2",
}


def _encode(payload: Any) -> Any:
    return json.dumps(payload) if isinstance(payload, (dict, list)) else payload


def _config() -> LLMAgentConfig:
    return LLMAgentConfig(provider="test", llm_id="test_agent", model="test-model")


class ScriptedAgent(LLMAgent):
    """Returns canned responses in order; exceptions in the script are raised."""

    def __init__(self, *responses: Any):
        super().__init__(config=_config())
        self.responses: List[Any] = list(responses)
        self.calls: List[dict] = []

    def _call_provider(self, *, system_prompt, user_prompt, output_model, method_type, image):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "output_model": output_model,
                "method_type": method_type,
                "image": image,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return _encode(response)


class ControlledAgent(LLMAgent):
    """Every call suspends until the test resolves or fails it."""

    def __init__(self):
        super().__init__(config=_config())
        self.pending: List[tuple] = []

    async def run_structured_call(self, **kwargs):
        future = asyncio.get_running_loop().create_future()
        self.pending.append((kwargs, future))
        return await future

    def _call_provider(self, **kwargs):
        raise NotImplementedError

    def resolve(self, index: int, payload: Any) -> None:
        self.pending[index][1].set_result(_encode(payload))

    def fail(self, index: int, error: BaseException) -> None:
        self.pending[index][1].set_exception(error)


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def png_image() -> ImageUpload:
    return ImageUpload(data=PNG_BYTES, mime_type="image/png", filename="problem.png")


@pytest.fixture
def controlled_agent() -> ControlledAgent:
    return ControlledAgent()


@pytest.fixture
def controlled_client(controlled_agent) -> ReasoningServiceClient:
    return ReasoningServiceClient(controlled_agent, timeout_sec=None)
