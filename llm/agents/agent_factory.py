from llm.agents.agent import LLMAgent
from llm.agents.gemini_agent import GeminiAgent
from schemas.dataclass.agent_config import LLMAgentConfig


class AgentFactory:
    @staticmethod
    def create_agent(config: LLMAgentConfig) -> LLMAgent:
        provider = config.provider.lower()

        if provider == "gemini":
            return GeminiAgent(config=config)

        raise ValueError(
            f"Unsupported LLM provider '{config.provider}' "
            f"for agent '{config.llm_id}'"
        )
