"""
Centralized configuration for Chatbot Copilot.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # OpenAI-compatible provider (comma-separated key pool for rotation)
    openai_api_keys: str = Field(default="", env="OPENAI_API_KEYS")
    openai_base_url: Optional[str] = Field(default=None, env="OPENAI_BASE_URL")
    openai_llm_model: str = Field(default="gpt-4o-mini", env="OPENAI_LLM_MODEL")
    openai_embed_model: str = Field(default="text-embedding-3-small", env="OPENAI_EMBED_MODEL")
    openai_vision_model: str = Field(default="gpt-4o-mini", env="OPENAI_VISION_MODEL")
    embedding_dimension: int = Field(default=768, env="EMBEDDING_DIMENSION")
    max_tokens: int = Field(default=1024, env="MAX_TOKENS")
    temperature: float = Field(default=0.3, env="TEMPERATURE")

    # Provider call policy
    provider_timeout_seconds: float = Field(default=30.0, env="PROVIDER_TIMEOUT_SECONDS")
    retry_max_attempts: int = Field(default=3, env="RETRY_MAX_ATTEMPTS")
    retry_base_delay_seconds: float = Field(default=1.0, env="RETRY_BASE_DELAY_SECONDS")

    # Pinecone
    pinecone_api_key: str = Field(default="", env="PINECONE_API_KEY")
    pinecone_index_name: str = Field(default="chatbot-copilot", env="PINECONE_INDEX_NAME")
    pinecone_namespace: str = Field(default="chat-history", env="PINECONE_NAMESPACE")
    pinecone_cloud: str = Field(default="aws", env="PINECONE_CLOUD")
    pinecone_region: str = Field(default="us-east-1", env="PINECONE_REGION")

    # Pipeline
    top_k: int = Field(default=5, env="TOP_K")
    confidence_threshold: float = Field(
        default=0.7,
        validation_alias=AliasChoices("AI_CONFIDENCE_THRESHOLD", "CONFIDENCE_THRESHOLD"),
    )
    # Non-escalated replies below this score get a follow-up hint
    low_confidence_hint_threshold: float = Field(default=0.8, env="LOW_CONFIDENCE_HINT_THRESHOLD")
    index_staff_replies: bool = Field(default=True, env="INDEX_STAFF_REPLIES")

    # Business hours
    business_hours_start: str = Field(default="10:00", env="BUSINESS_HOURS_START")
    business_hours_end: str = Field(default="22:00", env="BUSINESS_HOURS_END")
    timezone: str = Field(default="Asia/Bangkok", env="TIMEZONE")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    api_title: str = Field(default="Chatbot Copilot API", env="API_TITLE")
    api_version: str = Field(default="1.0.0", env="API_VERSION")
    cors_origins: str = Field(default="*", env="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @property
    def openai_api_keys_list(self) -> List[str]:
        return [k.strip() for k in self.openai_api_keys.split(",") if k.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
