from typing import Optional, TypeVar

from google.genai import types
from pydantic import BaseModel

from ingestion.image_ingestion import ImageUpload
from llm.agents.agent import LLMAgent
from llm.clients.provider_registry import ProviderClientRegistry
from schemas.utilities.pydantic_schema_utils import PydanticSchemaUtils

T = TypeVar("T", bound=BaseModel)


class GeminiAgent(LLMAgent):
    def __init__(self, *, config, client=None):
        super().__init__(config=config)
        self._client = client

    @property
    def client(self):
        # Resolved lazily so a missing key fails the call, not startup.
        if self._client is None:
            self._client = ProviderClientRegistry.get_gemini_client()
        return self._client

    def _call_provider(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        output_model: type[T],
        method_type: str,
        image: Optional[ImageUpload],
    ) -> str:
        gen_kwargs = self._build_generation_kwargs()

        parts = []
        if image is not None:
            parts.append(
                types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
            )
        parts.append(types.Part.from_text(text=user_prompt))

        response = self.client.models.generate_content(
            model=self.config.model,
            contents=[types.Content(role="user", parts=parts)],
            config={
                **gen_kwargs,
                "system_instruction": system_prompt,
                "response_mime_type": "application/json",
                "response_json_schema": PydanticSchemaUtils.json_schema(output_model),
            },
        )

        return response.text or ""
