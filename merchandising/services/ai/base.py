from abc import ABC, abstractmethod
from typing import Dict, List, Optional

# {"role": "user" | "assistant", "content": str}
ChatMessage = Dict[str, str]


class AIProvider(ABC):
    name: str = "unknown"
    model_name: str = ""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """
        True when the provider has the credentials/endpoint it needs.
        """
        pass

    @abstractmethod
    async def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Generates a text response for a single prompt.
        Raises on transport or provider failure.
        """
        pass

    @abstractmethod
    async def chat(self, messages: List[ChatMessage], system_context: Optional[str] = None, model: Optional[str] = None) -> str:
        """
        Generates the next assistant turn for a conversation.
        Raises on transport or provider failure.
        """
        pass
