"""
Generative Model Gateway

설정된 AI 제공자 하나로 요청을 보내는 얇은 어댑터.
- 재시도하지 않는다 (키 로테이션은 제공자 내부의 전송 계층 처리)
- 호출 1회는 타임아웃으로 제한된다
- 실패는 ModelUnavailable / GenerationError 두 가지로만 노출한다
"""
import asyncio
import logging
from typing import List, Optional, Union

from merchandising.exceptions import GenerationError, ModelUnavailable
from merchandising.services.ai.base import AIProvider, ChatMessage
from merchandising.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

PromptOrMessages = Union[str, List[ChatMessage]]


def build_provider(config: Settings) -> AIProvider:
    """설정의 default_ai_provider에 해당하는 제공자를 생성"""
    provider_name = config.default_ai_provider

    if provider_name == "gemini":
        from merchandising.services.ai.providers.gemini import GeminiProvider
        return GeminiProvider(
            api_keys=config.get_gemini_keys(),
            model_name=config.gemini_model,
            max_output_tokens=config.chat_max_output_tokens,
            temperature=config.chat_temperature,
        )
    if provider_name == "openai":
        from merchandising.services.ai.providers.openai import OpenAIProvider
        return OpenAIProvider(
            api_keys=list(config.openai_api_keys),
            model_name=config.openai_model,
            max_output_tokens=config.chat_max_output_tokens,
            temperature=config.chat_temperature,
        )
    if provider_name == "ollama":
        from merchandising.services.ai.providers.ollama import OllamaProvider
        return OllamaProvider(
            base_url=config.ollama_base_url,
            model_name=config.ollama_model,
            temperature=config.chat_temperature,
        )
    raise ModelUnavailable(f"Unknown AI provider: {provider_name}", provider=provider_name)


class ModelGateway:
    def __init__(self, provider: Optional[AIProvider], timeout: float = 60.0):
        self.provider = provider
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ModelGateway":
        config = config or default_settings
        return cls(build_provider(config), timeout=config.ai_request_timeout_seconds)

    @property
    def provider_name(self) -> Optional[str]:
        return self.provider.name if self.provider else None

    async def generate(
        self,
        prompt_or_messages: PromptOrMessages,
        system_context: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        프롬프트(str) 또는 대화 메시지 목록을 보내고 원문 텍스트를 반환.

        Raises:
            ModelUnavailable: 제공자가 없거나 자격 증명이 설정되지 않음
            GenerationError: 호출 실패, 타임아웃, 빈 응답
        """
        provider = self.provider
        if provider is None or not provider.is_configured:
            raise ModelUnavailable("AI model is not configured", provider=self.provider_name)

        limit = timeout if timeout is not None else self.timeout

        if isinstance(prompt_or_messages, str):
            if system_context:
                call = provider.chat([{"role": "user", "content": prompt_or_messages}], system_context)
            else:
                call = provider.generate_text(prompt_or_messages)
        else:
            call = provider.chat(list(prompt_or_messages), system_context)

        try:
            text = await asyncio.wait_for(call, timeout=limit)
        except asyncio.TimeoutError as e:
            logger.error(f"{provider.name} generation timed out after {limit}s")
            raise GenerationError(
                f"Model call timed out after {limit}s",
                provider=provider.name,
                model=provider.model_name,
            ) from e
        except Exception as e:
            logger.error(f"{provider.name} generation failed: {e}")
            raise GenerationError(
                f"Model call failed: {e}",
                provider=provider.name,
                model=provider.model_name,
            ) from e

        if not text or not text.strip():
            raise GenerationError("Model returned an empty response", provider=provider.name, model=provider.model_name)
        return text
