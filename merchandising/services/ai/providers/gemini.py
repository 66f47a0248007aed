import google.generativeai as genai
import logging
from typing import Any, Dict, List, Optional
from google.api_core.exceptions import ResourceExhausted, ServiceUnavailable, PermissionDenied
from merchandising.services.ai.base import AIProvider, ChatMessage

logger = logging.getLogger(__name__)

ROTATABLE_ERRORS = (ResourceExhausted, ServiceUnavailable, PermissionDenied)


class GeminiProvider(AIProvider):
    name = "gemini"

    def __init__(self, api_keys: List[str], model_name: str = "gemini-2.0-flash", max_output_tokens: int = 1000, temperature: float = 0.7):
        self.api_keys = [k for k in api_keys if k]  # Filter empty
        self.model_name = model_name
        self.generation_config = {"max_output_tokens": max_output_tokens, "temperature": temperature}
        self.current_key_index = 0
        self._configure_current_key()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_keys)

    def _configure_current_key(self):
        if not self.api_keys:
            logger.warning("No Gemini API Keys provided.")
            return

        genai.configure(api_key=self.api_keys[self.current_key_index])
        logger.info(f"Switched to Gemini Key Index: {self.current_key_index}")

    def _rotate_key(self) -> bool:
        """
        Rotates to the next available key.
        Returns True if rotation was successful (keys remaining), False otherwise.
        """
        if len(self.api_keys) <= 1:
            return False

        self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)
        self._configure_current_key()
        return True

    def _build_model(self, model: Optional[str], system_context: Optional[str] = None):
        return genai.GenerativeModel(
            model or self.model_name,
            system_instruction=system_context or None,
            generation_config=self.generation_config,
        )

    async def _generate(self, contents: Any, model: Optional[str], system_context: Optional[str] = None) -> str:
        if not self.api_keys:
            raise RuntimeError("Gemini API key is not configured")

        attempts = 0
        while True:
            target_model = self._build_model(model, system_context)
            try:
                response = await target_model.generate_content_async(contents)
                return response.text
            except ROTATABLE_ERRORS as e:
                logger.warning(f"Gemini Key {self.current_key_index} exhausted/unavailable: {e}")
                attempts += 1
                if attempts >= len(self.api_keys) or not self._rotate_key():
                    logger.error("All Gemini keys exhausted.")
                    raise

    async def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        return await self._generate(prompt, model)

    async def chat(self, messages: List[ChatMessage], system_context: Optional[str] = None, model: Optional[str] = None) -> str:
        # Gemini uses "model" for the assistant role
        contents: List[Dict[str, Any]] = [
            {
                "role": "model" if m.get("role") == "assistant" else "user",
                "parts": [m.get("content", "")],
            }
            for m in messages
        ]
        return await self._generate(contents, model, system_context)
