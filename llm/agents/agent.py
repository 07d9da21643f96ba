from abc import ABC, abstractmethod
import asyncio
import logging
import time
from typing import Optional, TypeVar

from pydantic import BaseModel

import config
from errors import AuthorizationError, MathTutorError, ServiceError
from ingestion.image_ingestion import ImageUpload
from schemas.dataclass.agent_config import LLMAgentConfig

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_AUTH_KEYWORDS = (
    "api key",
    "api_key",
    "unauthenticated",
    "permission denied",
    "permission_denied",
    "401",
    "403",
)


class LLMAgent(ABC):
    def __init__(self, *, config: LLMAgentConfig):
        self.config = config

    async def run_structured_call(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        output_model: type[T],
        method_type: str,
        image: Optional[ImageUpload] = None,
        timeout_sec: Optional[float] = config.DEFAULT_TIMEOUT_SEC,
        log_interval_sec: float = config.LOG_INTERVAL_SEC,
    ) -> str:
        """
        Issue one request and return the raw response text.

        The text is not trusted: callers pass it through schemas.validation.
        No retry is attempted; every failure surfaces as a ServiceError
        (AuthorizationError for credential problems).
        """
        return await self._run_llm_call(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            output_model=output_model,
            method_type=method_type,
            image=image,
            timeout_sec=timeout_sec,
            log_interval_sec=log_interval_sec,
        )

    async def _run_llm_call(
            self,
            *,
            system_prompt: str,
            user_prompt: str,
            output_model: type[T],
            method_type: str,
            image: Optional[ImageUpload],
            timeout_sec: Optional[float],
            log_interval_sec: float,
    ) -> str:

        start_time = time.monotonic()

        async def log_progress():
            try:
                while True:
                    await asyncio.sleep(log_interval_sec)
                    elapsed = time.monotonic() - start_time
                    logger.info(
                        "[thinking] agent=%s method=%s elapsed=%.1fs",
                        self.config.llm_id,
                        method_type,
                        elapsed,
                    )
            except asyncio.CancelledError:
                pass

        progress_task = asyncio.create_task(log_progress())

        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(
                    self._call_provider,
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    output_model=output_model,
                    method_type=method_type,
                    image=image,
                ),
                timeout=timeout_sec,
            )

        except MathTutorError:
            raise

        except asyncio.TimeoutError as e:
            logger.error(
                "[TIMEOUT] agent=%s method=%s after=%ss",
                self.config.llm_id,
                method_type,
                timeout_sec,
            )
            raise ServiceError(
                f"{method_type} timed out after {timeout_sec}s"
            ) from e

        except Exception as e:
            # Provider SDKs raise their own hierarchies; classify by message.
            error_msg = str(e).lower()
            if any(keyword in error_msg for keyword in _AUTH_KEYWORDS):
                logger.error(
                    "[AUTH FAIL] agent=%s method=%s error=%s",
                    self.config.llm_id,
                    method_type,
                    type(e).__name__,
                )
                raise AuthorizationError(str(e)) from e

            logger.error(
                "[SERVICE FAIL] agent=%s method=%s error=%s: %s",
                self.config.llm_id,
                method_type,
                type(e).__name__,
                e,
            )
            raise ServiceError(f"{method_type} failed: {e}") from e

        finally:
            progress_task.cancel()

        elapsed = time.monotonic() - start_time
        logger.info(
            "[CALL OK] agent=%s method=%s elapsed=%.1fs",
            self.config.llm_id,
            method_type,
            elapsed,
        )
        return text

    def _build_generation_kwargs(self) -> dict:
        """
        Build generic generation kwargs.
        Providers may ignore unsupported fields.
        """
        kwargs = {}

        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature

        if self.config.top_p is not None:
            kwargs["top_p"] = self.config.top_p

        return kwargs

    @abstractmethod
    def _call_provider(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        output_model: type[T],
        method_type: str,
        image: Optional[ImageUpload],
    ) -> str:
        """Call the LLM provider and return the raw JSON response text.

        Runs in a worker thread, so it may block.

        Args:
            system_prompt: The system-level instruction for the model.
            user_prompt: The user input/query for the model.
            output_model: The Pydantic model whose JSON schema constrains the output.
            method_type: The method/task type for logging and debugging.
            image: Optional image sent inline ahead of the text prompt.

        Returns:
            The response body as text; may be empty.
        """
        pass
