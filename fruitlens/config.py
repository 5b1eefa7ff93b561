import os
import logging
from dataclasses import dataclass
from pathlib import Path

# ----------------------------
# Path setup
# ----------------------------
ROOT = Path(__file__).resolve().parents[1]
MODELS_DIR = ROOT / "models"

MODEL_PATH = MODELS_DIR / "fruit_model.keras"
METADATA_FILENAME = "model_metadata.json"

# ----------------------------
# Defaults
# ----------------------------
DEFAULT_LABELS = ("apple", "banana", "orange")
IMAGE_SIZE = 128
SAMPLE_INTERVAL = 1.0
CAMERA_SIZE = (640, 480)
REQUEST_TIMEOUT = 60

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_number(name, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from None


def _env_labels(name, default=None):
    raw = os.environ.get(name)
    if not raw:
        return default
    labels = tuple(part.strip() for part in raw.split(",") if part.strip())
    return labels or default


@dataclass(frozen=True)
class Settings:
    model_source: str = str(MODEL_PATH)
    labels: tuple | None = None
    image_size: int = IMAGE_SIZE
    sample_interval: float = SAMPLE_INTERVAL
    camera_index: int = 0
    camera_width: int = CAMERA_SIZE[0]
    camera_height: int = CAMERA_SIZE[1]
    backend_url: str | None = None
    request_timeout: float = REQUEST_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, **overrides):
        """Build settings from FRUITLENS_* environment variables.

        Keyword overrides win over the environment, which wins over defaults.
        """
        values = dict(
            model_source=os.environ.get("FRUITLENS_MODEL") or str(MODEL_PATH),
            labels=_env_labels("FRUITLENS_LABELS"),
            image_size=_env_number("FRUITLENS_IMAGE_SIZE", IMAGE_SIZE, int),
            sample_interval=_env_number("FRUITLENS_SAMPLE_INTERVAL", SAMPLE_INTERVAL, float),
            camera_index=_env_number("FRUITLENS_CAMERA_INDEX", 0, int),
            backend_url=os.environ.get("FRUITLENS_BACKEND_URL") or None,
            request_timeout=_env_number("FRUITLENS_REQUEST_TIMEOUT", REQUEST_TIMEOUT, float),
            log_level=os.environ.get("FRUITLENS_LOG_LEVEL", "INFO").upper(),
        )
        values.update(overrides)
        if values["image_size"] <= 0:
            raise ValueError("FRUITLENS_IMAGE_SIZE must be positive")
        if values["sample_interval"] <= 0:
            raise ValueError("FRUITLENS_SAMPLE_INTERVAL must be positive")
        return cls(**values)


def configure_logging(level="INFO"):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
