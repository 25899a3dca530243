from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str = Field(default="sqlite:///./formbuilder.db", validation_alias="DATABASE_URL")

	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Form Builder", validation_alias="OPENROUTER_TITLE")

	# CORS
	frontend_url: str | None = Field(default=None, validation_alias="FRONTEND_URL")
	cors_origins: List[str] = Field(
		default=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
		validation_alias="CORS_ORIGINS",
	)

	# Local image uploads
	uploads_dir: str = Field(default="uploads", validation_alias="UPLOADS_DIR")
	max_upload_bytes: int = Field(default=5 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

	# Results email (disabled unless both user and password are set)
	email_user: str | None = Field(default=None, validation_alias="EMAIL_USER")
	email_pass: str | None = Field(default=None, validation_alias="EMAIL_PASS")
	email_from: str | None = Field(default=None, validation_alias="EMAIL_FROM")
	email_from_name: str = Field(default="Form Builder System", validation_alias="EMAIL_FROM_NAME")
	email_host: str = Field(default="smtp.gmail.com", validation_alias="EMAIL_HOST")
	email_port: int = Field(default=465, validation_alias="EMAIL_PORT")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	def allowed_origins(self) -> List[str]:
		origins = list(self.cors_origins)
		if self.frontend_url and self.frontend_url not in origins:
			origins.append(self.frontend_url)
		return origins

	def email_configured(self) -> bool:
		return bool(self.email_user and self.email_pass)

settings = Settings()
