# llm/clients/provider_registry.py
import google.genai as genai

import config
from errors import AuthorizationError


class ProviderClientRegistry:
    _clients: dict[str, object] = {}

    @classmethod
    def get_gemini_client(cls) -> genai.Client:
        if "gemini" not in cls._clients:
            api_key = config.get_api_key()
            if not api_key:
                raise AuthorizationError(
                    f"None of {', '.join(config.API_KEY_ENV_VARS)} is set"
                )
            cls._clients["gemini"] = genai.Client(api_key=api_key)
        return cls._clients["gemini"]

    @classmethod
    def reset(cls) -> None:
        cls._clients.clear()
