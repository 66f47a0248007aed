import httpx
import logging
from typing import Any, Dict, List, Optional
from merchandising.services.ai.base import AIProvider, ChatMessage

logger = logging.getLogger(__name__)


class OllamaProvider(AIProvider):
    name = "ollama"

    def __init__(self, base_url: str, model_name: str, temperature: float = 0.7, timeout: float = 300.0):
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout
        logger.info(f"OllamaProvider initialized: model={model_name}")

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.model_name)

    async def _chat(self, messages: List[Dict[str, str]], model: str) -> Dict[str, Any]:
        """
        Internal method to call /api/chat endpoint.
        """
        url = f"{self.base_url}/api/chat"
        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature},
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(url, json=payload)
            resp.raise_for_status()
            return resp.json()

    async def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        response = await self._chat([{"role": "user", "content": prompt}], model or self.model_name)
        return response.get("message", {}).get("content", "")

    async def chat(self, messages: List[ChatMessage], system_context: Optional[str] = None, model: Optional[str] = None) -> str:
        payload: List[Dict[str, str]] = []
        if system_context:
            payload.append({"role": "system", "content": system_context})
        payload.extend({"role": m.get("role", "user"), "content": m.get("content", "")} for m in messages)
        response = await self._chat(payload, model or self.model_name)
        return response.get("message", {}).get("content", "")
