"""Runtime settings read from the environment and ``.env``."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from cooksmart_utils.ai.config import DEFAULT_MODEL_ID, AIServiceConfig
from cooksmart_utils.scraping import DEFAULT_USER_AGENT


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow DB_PATH or db_path
        extra="ignore",
    )

    # Storage
    db_path: str = "data/cooksmart.db"

    # Recipe APIs
    spoonacular_api_key: Optional[str] = None
    edamam_app_id: Optional[str] = None
    edamam_app_key: Optional[str] = None

    # Website scraping
    enable_web_scraping: bool = False
    scraper_user_agent: str = DEFAULT_USER_AGENT

    # Bedrock
    bedrock_model_id: str = DEFAULT_MODEL_ID
    aws_region: Optional[str] = None
    max_tokens: int = 4096
    temperature: float = 0.7

    # Discovery
    default_recipe_count: int = 2
    default_max_results: int = 20

    def ai_config(self) -> AIServiceConfig:
        return AIServiceConfig(
            model_id=self.bedrock_model_id,
            region=self.aws_region,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            default_recipe_count=self.default_recipe_count,
        )
