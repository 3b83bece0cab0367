"""Application configuration via environment variables."""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Blob storage
    data_dir: str = "./data"
    file_ttl_hours: int = 24

    # Uploads
    max_upload_mb: int = 50
    max_upload_files: int = 10
    allowed_mime_types: List[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/jpg",
        "image/webp",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # Operations
    render_dpi: int = 150
    default_compress_quality: float = 0.8

    # Vision service
    vision_provider: str = "google"  # "google" or "disabled"
    google_cloud_project: Optional[str] = None
    google_cloud_key_path: Optional[str] = None

    # Runtime
    log_level: str = "INFO"
    port: int = 10000
    shutdown_grace_seconds: float = 30.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
