from dataclasses import dataclass, field
from typing import Optional

import config


@dataclass(frozen=True)
class LLMAgentConfig:
    provider: str = "gemini"
    llm_id: str = "math_snap_solver"
    model: str = field(default_factory=config.get_model_name)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
