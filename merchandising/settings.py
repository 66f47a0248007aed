from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # database_url: str = "postgresql+psycopg://merch@/merchandising?host=/var/run/postgresql"
    database_url: str = "sqlite:///./merchandising.db"
    database_echo: bool = False

    # AI Settings
    default_ai_provider: str = "gemini"  # gemini, ollama, or openai
    ai_request_timeout_seconds: float = 60.0  # 모델 호출 1회 제한 시간 (초)
    chat_max_output_tokens: int = 1000
    chat_temperature: float = 0.7

    # Gemini
    gemini_api_key: str = ""  # Backwards compatibility
    gemini_api_keys: list[str] = []  # List of keys for rotation
    gemini_model: str = "gemini-2.0-flash"

    # OpenAI
    openai_api_keys: list[str] = []  # List of keys for rotation
    openai_model: str = "gpt-4o-mini"

    # Ollama
    ollama_base_url: str = "http://127.0.0.1:11434"
    ollama_model: str = "qwen3:8b"

    # 추천 엔진
    recommendation_recent_activity_limit: int = 20  # 관계 기반 추천에 사용할 최근 활동 수
    recommendation_activity_window_days: int = 30  # 카테고리 관심도 집계 기간
    recommendation_top_categories: int = 5
    assistant_relevant_product_cap: int = 5  # 어시스턴트 프롬프트에 넣을 최대 상품 수
    assistant_keyword_product_limit: int = 2  # 키워드 검색 폴백 시 키워드당 상품 수

    # 키워드 → 카테고리 테이블 (비어 있으면 패키지 기본 테이블 사용)
    keyword_table_path: str = ""

    # 어시스턴트 프롬프트에 노출되는 스토어 이름
    store_name: str = "Marketplace"

    @field_validator("database_url")
    @classmethod
    def validate_db_url(cls, v: str) -> str:
        if not v.startswith(("postgresql", "sqlite")):
            raise ValueError("DB URL은 'postgresql' 또는 'sqlite'로 시작해야 합니다.")
        return v

    @field_validator("default_ai_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("gemini", "openai", "ollama"):
            raise ValueError("AI provider는 gemini, openai, ollama 중 하나여야 합니다.")
        return v

    @field_validator("ollama_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL은 'http://' 또는 'https://'로 시작해야 합니다.")
        return v

    @field_validator("ai_request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("타임아웃은 0보다 커야 합니다.")
        return v

    @field_validator(
        "recommendation_recent_activity_limit",
        "recommendation_activity_window_days",
        "recommendation_top_categories",
        "assistant_relevant_product_cap",
        "assistant_keyword_product_limit",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("추천 설정 값은 1 이상이어야 합니다.")
        return v

    def get_gemini_keys(self) -> list[str]:
        """단일 키(하위 호환)와 키 목록을 합쳐 중복 없이 반환"""
        keys = [k for k in self.gemini_api_keys if k]
        if self.gemini_api_key and self.gemini_api_key not in keys:
            keys.insert(0, self.gemini_api_key)
        return keys

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)


settings = Settings()
