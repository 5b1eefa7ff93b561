"""
Model loading.

Fetches a pretrained Keras classifier from a local path or an HTTP(S) URL,
compiles it for inference and wraps it in a ModelHandle. Loading happens once;
the loader ends in READY or FAILED and never retries on its own.
"""

import json
import logging
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import requests

from fruitlens.config import DEFAULT_LABELS, METADATA_FILENAME, REQUEST_TIMEOUT
from fruitlens.errors import ModelLoadError

logger = logging.getLogger(__name__)


class ModelStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ModelHandle:
    model: Any
    input_shape: tuple
    labels: tuple
    compiled: bool = True

    @property
    def image_size(self):
        """(height, width) expected by the model, None where unconstrained."""
        return self.input_shape[1], self.input_shape[2]


def is_remote(source) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_keras_model(path):
    """Deserialize and compile a Keras model saved as .keras or .h5."""
    from tensorflow.keras.models import load_model

    model = load_model(path, compile=False)
    # Optimizer and loss are unused for inference.
    model.compile(optimizer="adam", loss="categorical_crossentropy", metrics=["accuracy"])
    return model


def read_metadata_labels(model_path):
    """Labels from a model_metadata.json sitting next to the model, if any."""
    metadata_path = Path(model_path).with_name(METADATA_FILENAME)
    if not metadata_path.exists():
        return None
    try:
        metadata = json.loads(metadata_path.read_text())
    except (OSError, ValueError) as e:
        raise ModelLoadError(f"Invalid model metadata at {metadata_path}: {e}") from e

    classes = metadata.get("classes") or {}
    if isinstance(classes, list):
        return tuple(str(c) for c in classes)
    try:
        return tuple(str(classes[k]) for k in sorted(classes, key=int))
    except ValueError as e:
        raise ModelLoadError(f"Class keys in {metadata_path} must be integers") from e


def _output_width(model):
    shape = getattr(model, "output_shape", None)
    if shape is None:
        return None
    if isinstance(shape, list):
        shape = shape[0]
    return shape[-1]


def _input_shape(model):
    shape = getattr(model, "input_shape", None)
    if shape is None and getattr(model, "inputs", None):
        shape = model.inputs[0].shape
    if isinstance(shape, list):
        shape = shape[0]
    if shape is None:
        raise ModelLoadError("Model does not report an input shape")
    shape = tuple(None if d is None else int(d) for d in shape)
    if len(shape) != 4:
        raise ModelLoadError(f"Expected a (batch, height, width, channels) input, got {shape}")
    return shape


class ModelLoader:
    """Loads the classifier once and remembers how that went."""

    def __init__(
        self,
        source,
        labels=None,
        load_fn: Optional[Callable] = None,
        timeout=REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.source = str(source)
        self.labels = tuple(labels) if labels else None
        self.load_fn = load_fn or load_keras_model
        self.timeout = timeout
        self.http = session or requests.Session()
        self.status = ModelStatus.LOADING
        self.handle: Optional[ModelHandle] = None
        self.error: Optional[ModelLoadError] = None
        self._download = None

    @property
    def ready(self):
        return self.status is ModelStatus.READY

    def load(self) -> ModelHandle:
        if self.status is ModelStatus.READY:
            return self.handle
        if self.status is ModelStatus.FAILED:
            raise self.error

        try:
            self.handle = self._load()
        except ModelLoadError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = ModelLoadError(f"Could not load model from {self.source}: {e}")
            self._fail(error)
            raise error from e
        finally:
            self._cleanup()

        self.status = ModelStatus.READY
        logger.info("Model loaded from %s, input shape %s", self.source, self.handle.input_shape)
        return self.handle

    def _fail(self, error):
        self.status = ModelStatus.FAILED
        self.error = error
        logger.error("Model unavailable: %s", error)

    def _load(self):
        path = self._fetch() if is_remote(self.source) else Path(self.source)
        if not path.exists():
            raise ModelLoadError(f"Cannot find model at {path}")

        labels = self.labels
        if labels is None and not is_remote(self.source):
            labels = read_metadata_labels(path)
        labels = labels or DEFAULT_LABELS

        model = self.load_fn(str(path))
        input_shape = _input_shape(model)

        width = _output_width(model)
        if width is not None and width != len(labels):
            raise ModelLoadError(
                f"Model outputs {width} classes but {len(labels)} labels are configured"
            )

        return ModelHandle(model=model, input_shape=input_shape, labels=tuple(labels))

    def _fetch(self):
        """Download a remote artifact into a temporary file."""
        logger.info("Fetching model from %s", self.source)
        try:
            resp = self.http.get(self.source, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ModelLoadError(f"Could not fetch model from {self.source}: {e}") from e

        suffix = Path(self.source.split("?", 1)[0]).suffix or ".keras"
        self._download = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
        with self._download as f:
            f.write(resp.content)
        return Path(self._download.name)

    def _cleanup(self):
        if self._download is not None:
            Path(self._download.name).unlink(missing_ok=True)
            self._download = None
