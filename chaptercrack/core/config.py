import logging
import re
import shelve
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Accepts "-30dB", "-35.5dB", "-30" and plain amplitude ratios such as "0.001"
NOISE_THRESHOLD_PATTERN = re.compile(r"^-?\d+(\.\d+)?(dB)?$")


class DetectionConfig(BaseModel):
    """Silence detection parameters, passed opaquely to ffmpeg's silencedetect filter"""

    model_config = ConfigDict(frozen=True)

    noise_threshold: str = "-30dB"
    min_silence_duration: float = Field(default=2.0, gt=0)

    @field_validator("noise_threshold")
    @classmethod
    def _check_noise_threshold(cls, value: str) -> str:
        value = value.strip()
        if not NOISE_THRESHOLD_PATTERN.match(value):
            raise ValueError(f"Noise threshold must look like -30dB, got {value!r}")
        return value

    def filter_expression(self) -> str:
        return f"silencedetect=noise={self.noise_threshold}:d={self.min_silence_duration:g}"


class OutputConfig(BaseModel):
    """Output preferences for the muxing step"""

    keep_metadata_file: bool = False
    audio_codec: str = "copy"


class AppConfig(BaseModel):
    """Complete persisted configuration"""

    detection: DetectionConfig = DetectionConfig()
    output: OutputConfig = OutputConfig()


class Settings(BaseSettings):
    # Web App Configuration (from environment)
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # External tools
    FFMPEG_BINARY: str = "ffmpeg"
    FFPROBE_BINARY: str = "ffprobe"

    # Detection defaults used until the user saves their own
    NOISE_THRESHOLD: str = "-30dB"
    SILENCE_DURATION: float = 2.0

    # Conversions requested over HTTP must stay inside this directory
    MEDIA_BASE: str = "/media"
    CONFIG_DIR: str = ""

    class Config:
        case_sensitive = True


# Global configuration cache
_settings: Optional[Settings] = None
_app_config: Optional[AppConfig] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.debug(f"Loaded settings - FFMPEG_BINARY: {_settings.FFMPEG_BINARY}")
        logger.debug(f"Loaded settings - FFPROBE_BINARY: {_settings.FFPROBE_BINARY}")
        logger.debug(f"Loaded settings - MEDIA_BASE: {_settings.MEDIA_BASE}")
    return _settings


def reset_settings():
    """Drop cached settings and configuration so the next access re-reads the environment"""
    global _settings, _app_config
    _settings = None
    _app_config = None


def default_detection_config() -> DetectionConfig:
    """Detection defaults taken from the environment"""
    settings = get_settings()
    return DetectionConfig(
        noise_threshold=settings.NOISE_THRESHOLD,
        min_silence_duration=settings.SILENCE_DURATION,
    )


def get_config_db_path() -> Path:
    """Get the path to the configuration database"""
    config_dir = get_settings().CONFIG_DIR
    if config_dir:
        return Path(config_dir).expanduser() / "app_config"
    return Path.home() / ".config" / "chaptercrack" / "app_config"


def _ensure_config_dir():
    """Ensure the config directory exists"""
    config_path = get_config_db_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load persisted configuration from the shelve database"""
    config_db_path = str(get_config_db_path())

    try:
        _ensure_config_dir()
        with shelve.open(config_db_path, "c") as db:
            detection_data = db.get("detection", {})
            output_data = db.get("output", {})

            detection = DetectionConfig(**detection_data) if detection_data else default_detection_config()
            output = OutputConfig(**output_data) if output_data else OutputConfig()

            return AppConfig(detection=detection, output=output)
    except Exception as e:
        logger.warning(f"Failed to load configuration from {config_db_path}: {e}")
        return AppConfig(detection=default_detection_config())


def save_config(config: AppConfig) -> bool:
    """Save configuration to the shelve database"""
    config_db_path = str(get_config_db_path())

    try:
        _ensure_config_dir()
        with shelve.open(config_db_path, "c") as db:
            db["detection"] = config.detection.model_dump()
            db["output"] = config.output.model_dump()
            db.sync()
        return True
    except Exception as e:
        logger.error(f"Failed to save configuration to {config_db_path}: {e}")
        return False


def get_app_config() -> AppConfig:
    """Get the current application configuration"""
    global _app_config
    if _app_config is None:
        _app_config = load_config()
        logger.info(
            f"Loaded app config - noise={_app_config.detection.noise_threshold}, "
            f"duration={_app_config.detection.min_silence_duration}"
        )
    return _app_config


def update_app_config(config: AppConfig) -> bool:
    """Update the application configuration and save to database"""
    global _app_config
    if save_config(config):
        _app_config = config
        return True
    return False


def save_detection_config(detection: DetectionConfig) -> bool:
    """Save only the detection section"""
    config = get_app_config().model_copy(update={"detection": detection})
    return update_app_config(config)
