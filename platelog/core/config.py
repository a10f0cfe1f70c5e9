import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv


# ==========================================================
# 1) Cargar .env raíz
# ==========================================================
load_dotenv(".env")
DEPLOY_ENV = os.getenv("DEPLOY_ENV", "prod").lower()

# ==========================================================
# 2) Cargar .env del entorno
# ==========================================================
ENV_PATH = f"deploy/{DEPLOY_ENV}/.env"
load_dotenv(ENV_PATH, override=True)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        extra="allow",
        populate_by_name=True,
    )

    # =========================
    #  App
    # =========================
    deploy_env: str = Field("prod", validation_alias="DEPLOY_ENV")
    app_name: str = Field("platelog", validation_alias="APP_NAME")
    app_env: str = Field("prod", validation_alias="APP_ENV")
    app_host: str = Field("0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(8000, validation_alias="APP_PORT")

    # =========================
    #  Database
    # =========================
    local_db_url: str = Field("sqlite:///platelog_local.db", validation_alias="LOCAL_DB_URL")
    remote_db_url: str = Field("sqlite:///platelog_remote.db", validation_alias="REMOTE_DB_URL")

    # =========================
    #  Recognition
    # =========================
    recognition_backend: str = Field("platerecognizer", validation_alias="RECOGNITION_BACKEND")
    recognition_api_url: str = Field(
        "https://api.platerecognizer.com/v1/plate-reader/", validation_alias="RECOGNITION_API_URL"
    )
    recognition_api_token: Optional[str] = Field(None, validation_alias="RECOGNITION_API_TOKEN")
    recognition_region: str = Field("br", validation_alias="RECOGNITION_REGION")
    recognition_timeout: float = Field(15.0, validation_alias="RECOGNITION_TIMEOUT")
    recognition_mercosul_only: bool = Field(True, validation_alias="RECOGNITION_MERCOSUL_ONLY")
    confidence_threshold: float = Field(0.7, validation_alias="CONFIDENCE_THRESHOLD")
    scan_interval: float = Field(2.0, validation_alias="SCAN_INTERVAL")

    # =========================
    #  Plate cache
    # =========================
    cache_max_size: int = Field(500, validation_alias="CACHE_MAX_SIZE")
    cache_retention_days: int = Field(30, validation_alias="CACHE_RETENTION_DAYS")
    cache_sync_days: int = Field(30, validation_alias="CACHE_SYNC_DAYS")
    cache_sync_limit: int = Field(500, validation_alias="CACHE_SYNC_LIMIT")

    # =========================
    #  Session ledger
    # =========================
    plate_min_length: int = Field(7, validation_alias="PLATE_MIN_LENGTH")

    # =========================
    #  Camera
    # =========================
    camera_backend: str = Field("opencv", validation_alias="CAMERA_BACKEND")
    camera_environment_device: str = Field("0", validation_alias="CAMERA_ENVIRONMENT_DEVICE")
    camera_user_device: Optional[str] = Field(None, validation_alias="CAMERA_USER_DEVICE")
    camera_facing_mode: str = Field("environment", validation_alias="CAMERA_FACING_MODE")
    camera_width: int = Field(1280, validation_alias="CAMERA_WIDTH")
    camera_height: int = Field(720, validation_alias="CAMERA_HEIGHT")
    camera_jpeg_quality: int = Field(80, validation_alias="CAMERA_JPEG_QUALITY")
    camera_torch_path: Optional[str] = Field(None, validation_alias="CAMERA_TORCH_PATH")
    camera_fake_source: Optional[str] = Field(None, validation_alias="CAMERA_FAKE_SOURCE")

    # =========================
    #  Feedback
    # =========================
    feedback_enabled: bool = Field(True, validation_alias="FEEDBACK_ENABLED")
    feedback_player_command: str = Field("aplay -q -", validation_alias="FEEDBACK_PLAYER_COMMAND")
    feedback_vibrate_command: Optional[str] = Field(None, validation_alias="FEEDBACK_VIBRATE_COMMAND")

    # =========================
    #  Remote history writer
    # =========================
    history_write_attempts: int = Field(3, validation_alias="HISTORY_WRITE_ATTEMPTS")
    history_write_base_delay: float = Field(0.5, validation_alias="HISTORY_WRITE_BASE_DELAY")

    # =========================
    #  Monitoring
    # =========================
    prometheus_port: int = Field(9100, validation_alias="PROMETHEUS_PORT")


settings = Settings()
