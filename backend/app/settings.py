from typing import List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelConfig(BaseModel):
	model: str
	version: str = "v1beta"
	# Send the key as ?key= instead of the x-goog-api-key header
	key_in_query: bool = False


def _default_model_configs() -> List[ModelConfig]:
	return [
		ModelConfig(model="gemini-2.0-flash", version="v1beta", key_in_query=False),
		ModelConfig(model="gemini-2.0-flash", version="v1beta", key_in_query=True),
		ModelConfig(model="gemini-1.5-flash", version="v1", key_in_query=False),
		ModelConfig(model="gemini-1.5-flash", version="v1", key_in_query=True),
		ModelConfig(model="gemini-pro", version="v1beta", key_in_query=False),
	]


class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com", validation_alias="GEMINI_BASE_URL")
	# Tried in order; JSON list in the environment, e.g. [{"model": "gemini-2.0-flash", "version": "v1beta"}]
	gemini_model_configs: List[ModelConfig] = Field(default_factory=_default_model_configs, validation_alias="GEMINI_MODEL_CONFIGS")
	gemini_timeout_seconds: float = Field(default=30, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
	# Seed user
	seed_username: str | None = Field(default=None, validation_alias="SEED_USERNAME")
	seed_password_plain: str | None = Field(default=None, validation_alias="SEED_PASSWORD")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
