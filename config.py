import logging
import threading
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from image_synthesis import DEFAULT_IMAGE_MODEL, FAST_IMAGE_MODEL, ImageSynthesisClient
from object_storage import LocalTemplateStorage, S3TemplateStorage
from template_orchestrator import TemplateOrchestrator
from template_schema import GenerationConfig


class Settings(BaseSettings):
    # Gemini / Imagen through Replit's AI Integrations service
    AI_INTEGRATIONS_GEMINI_API_KEY: Optional[str] = None
    AI_INTEGRATIONS_GEMINI_BASE_URL: Optional[str] = None
    GEMINI_IMAGE_MODEL: str = DEFAULT_IMAGE_MODEL
    GEMINI_FAST_IMAGE_MODEL: str = FAST_IMAGE_MODEL

    # Object storage. Without a bucket, templates are written under LOCAL_STORAGE_DIR.
    S3_BUCKET_NAME: Optional[str] = None
    AWS_REGION: str = "us-east-1"
    STORAGE_DOMAIN: str = "s3.amazonaws.com"
    LOCAL_STORAGE_DIR: str = "generated_templates"

    # Batch defaults
    STYLES_PER_CATEGORY: int = 5
    BATCH_SIZE: int = 5
    DELAY_BETWEEN_BATCHES: float = 2.0
    DELAY_BETWEEN_CATEGORIES: float = 5.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def generation_config(self, **overrides) -> GenerationConfig:
        values = {
            "styles_per_category": self.STYLES_PER_CATEGORY,
            "batch_size": self.BATCH_SIZE,
            "delay_between_batches": self.DELAY_BETWEEN_BATCHES,
            "delay_between_categories": self.DELAY_BETWEEN_CATEGORIES,
        }
        values.update(overrides)
        return GenerationConfig(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_storage(settings: Settings):
    if settings.S3_BUCKET_NAME:
        return S3TemplateStorage(
            bucket=settings.S3_BUCKET_NAME,
            region=settings.AWS_REGION,
            storage_domain=settings.STORAGE_DOMAIN,
        )
    logging.getLogger(__name__).warning(
        f"[STORAGE] S3_BUCKET_NAME not set, writing templates to {settings.LOCAL_STORAGE_DIR}/"
    )
    return LocalTemplateStorage(settings.LOCAL_STORAGE_DIR)


def build_synthesis_client(settings: Settings) -> Optional[ImageSynthesisClient]:
    """None when no API key is configured; placeholder runs still work"""
    if not settings.AI_INTEGRATIONS_GEMINI_API_KEY:
        return None
    return ImageSynthesisClient(
        model=settings.GEMINI_IMAGE_MODEL,
        fast_model=settings.GEMINI_FAST_IMAGE_MODEL,
        api_key=settings.AI_INTEGRATIONS_GEMINI_API_KEY,
        base_url=settings.AI_INTEGRATIONS_GEMINI_BASE_URL,
    )


def build_orchestrator(
    settings: Optional[Settings] = None,
    cancel_event: Optional[threading.Event] = None
) -> TemplateOrchestrator:
    settings = settings or Settings()
    return TemplateOrchestrator(
        storage=build_storage(settings),
        synthesis=build_synthesis_client(settings),
        cancel_event=cancel_event,
    )
