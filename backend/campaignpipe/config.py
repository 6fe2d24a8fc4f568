"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class GoogleCloudConfig(BaseModel):
    """Google generative AI credentials.

    Either api_key (Gemini Developer API) or project_id with use_vertex_ai
    (Vertex AI via Application Default Credentials) must be available.
    """

    api_key: Optional[str] = None
    project_id: Optional[str] = None
    location: str = "us-central1"
    use_vertex_ai: bool = False


class ModelsConfig(BaseModel):
    """AI model identifiers."""

    text: str = "gemini-2.5-flash"
    image_gen: str = "gemini-2.5-flash-image"
    video_gen: str = "veo-2.0-generate-001"


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    palette_size: int = Field(default=5, ge=1)
    marketing_image_count: int = Field(default=2, ge=1)
    video_poll_interval: float = Field(default=10.0, ge=0)
    video_poll_max: Optional[int] = Field(default=None, ge=1)
    video_aspect_ratio: str = "16:9"
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_base_delay: float = Field(default=2.0, ge=0)
    download_timeout: float = Field(default=120.0, gt=0)


class StorageConfig(BaseModel):
    """Artifact storage configuration."""

    tmp_dir: Path = Path("tmp/campaigns")

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: CAMPAIGNPIPE_, delimiter: __)
    2. .env file
    3. YAML file (config.yaml)
    4. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="CAMPAIGNPIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    google_cloud: GoogleCloudConfig = GoogleCloudConfig()
    models: ModelsConfig = ModelsConfig()
    pipeline: PipelineConfig = PipelineConfig()
    storage: StorageConfig = StorageConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Environment variables
        2. .env file
        3. YAML file
        4. Init settings (programmatic defaults)
        """
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


# Singleton instance
settings = Settings()
