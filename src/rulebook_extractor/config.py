"""Configuration management for Rulebook Extractor."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RBX_",
    )

    # Paths
    input_dir: Path = Field(default=Path("Downloads"))
    output_dir: Path = Field(default=Path("data/processed"))

    # Directory walk
    extensions: list[str] = Field(default_factory=lambda: [".pdf", ".md", ".txt", ".html"])
    excluded_dirs: str = Field(
        default=r"Processed|Individual Cards|Character Sheets",
        description="Regex; matching directory names are not descended into",
    )
    excluded_files: str = Field(
        default=r"Character Sheet|Pregen|Map|Image|\.jpg|\.png",
        description="Regex; matching file names are skipped",
    )

    # Processing settings
    min_text_length: int = Field(default=100, description="Skip files with less text than this")
    max_workers: int = Field(default=1, description="Worker processes; 1 runs in-process")
    file_timeout_seconds: float = Field(default=120.0, description="Wall-clock budget per file")
    strip_html: bool = Field(default=False, description="Convert HTML to text before extraction")
    drop_invalid: bool = Field(default=False, description="Drop records with validation errors")
    sample_size: int = Field(default=3)

    log_level: str = Field(default="INFO")

    @property
    def report_path(self) -> Path:
        return self.output_dir / "validation-report.json"

    @property
    def summary_path(self) -> Path:
        return self.output_dir / "run-summary.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
