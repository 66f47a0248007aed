import logging
from typing import Any, Dict, List, Optional
from openai import AsyncOpenAI, RateLimitError, AuthenticationError, APIConnectionError
from merchandising.services.ai.base import AIProvider, ChatMessage

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    name = "openai"

    def __init__(self, api_keys: List[str], model_name: str = "gpt-4o-mini", max_output_tokens: int = 1000, temperature: float = 0.7):
        self.api_keys = [k for k in api_keys if k]
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.current_key_index = 0
        self.client: Optional[AsyncOpenAI] = None
        self._configure_current_key()

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _configure_current_key(self):
        if not self.api_keys:
            logger.warning("No OpenAI API Keys provided.")
            self.client = None
            return

        current_key = self.api_keys[self.current_key_index]
        self.client = AsyncOpenAI(api_key=current_key)
        logger.info(f"Switched to OpenAI Key Index: {self.current_key_index}")

    def _rotate_key(self) -> bool:
        if len(self.api_keys) <= 1:
            return False

        self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)
        self._configure_current_key()
        return True

    async def _complete(self, messages: List[Dict[str, Any]], model: Optional[str]) -> str:
        if not self.client:
            raise RuntimeError("OpenAI API key is not configured")

        target_model = model or self.model_name
        attempts = 0
        while True:
            try:
                response = await self.client.chat.completions.create(
                    model=target_model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_output_tokens,
                )
                return response.choices[0].message.content or ""
            except (RateLimitError, AuthenticationError, APIConnectionError) as e:
                logger.warning(f"OpenAI Key {self.current_key_index} error: {e}. Rotating.")
                attempts += 1
                if attempts >= len(self.api_keys) or not self._rotate_key():
                    logger.error("All OpenAI keys exhausted.")
                    raise

    async def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        return await self._complete([{"role": "user", "content": prompt}], model)

    async def chat(self, messages: List[ChatMessage], system_context: Optional[str] = None, model: Optional[str] = None) -> str:
        payload: List[Dict[str, Any]] = []
        if system_context:
            payload.append({"role": "system", "content": system_context})
        payload.extend({"role": m.get("role", "user"), "content": m.get("content", "")} for m in messages)
        return await self._complete(payload, model)
