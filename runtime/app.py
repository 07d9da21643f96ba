import logging
from enum import Enum
from typing import Optional, Union

import config
from errors import InvalidInputError
from llm.agents.agent import LLMAgent
from llm.agents.agent_factory import AgentFactory
from llm.reasoning_client import ReasoningServiceClient
from pipeline.solve_pipeline import SolvePipeline, StageHooks, StageTimings
from runtime.practice_session import PracticeSession
from runtime.renderer import SafeRenderer, TypesettingRenderer
from schemas.dataclass.agent_config import LLMAgentConfig
from schemas.pydantic.question import Difficulty

logger = logging.getLogger(__name__)


class AppMode(str, Enum):
    SOLVER = "solver"
    PRACTICE = "practice"


class MathTutorApp:
    """
    Top-level application shell.
    Builds the Reasoning Service client once and shares it between the
    solver pipeline and the practice session.
    """

    def __init__(
        self,
        *,
        agent: Optional[LLMAgent] = None,
        agent_config: Optional[LLMAgentConfig] = None,
        renderer: Optional[TypesettingRenderer] = None,
        timings: Optional[StageTimings] = None,
        hooks: Optional[StageHooks] = None,
        timeout_sec: Optional[float] = config.DEFAULT_TIMEOUT_SEC,
        difficulty: Union[Difficulty, str] = Difficulty.MEDIUM,
    ):
        self.mode = AppMode.SOLVER

        # A missing key is not fatal: the app loads and calls fail later
        # with AuthorizationError.
        self.api_key_warning: Optional[str] = None
        if agent is None and not config.get_api_key():
            self.api_key_warning = config.MISSING_API_KEY_WARNING
            logger.warning("[CONFIG] %s", self.api_key_warning)

        self.agent = agent or AgentFactory.create_agent(agent_config or LLMAgentConfig())
        self.client = ReasoningServiceClient(self.agent, timeout_sec=timeout_sec)
        self.pipeline = SolvePipeline(self.client, timings=timings, hooks=hooks)
        self.practice = PracticeSession(self.client, difficulty=difficulty)
        self.renderer = SafeRenderer(renderer)

    def switch_mode(self, mode: Union[AppMode, str]) -> AppMode:
        try:
            self.mode = AppMode(mode)
        except ValueError:
            raise InvalidInputError(f"Unknown mode {mode!r}") from None

        logger.info("[MODE] %s", self.mode.value)
        return self.mode
