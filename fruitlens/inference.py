import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from fruitlens.config import IMAGE_SIZE
from fruitlens.errors import InferenceError
from fruitlens.model_loader import ModelHandle
from fruitlens.preprocessing import preprocess

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    label: str
    confidence: float  # percent, 0-100

    @property
    def confidence_text(self):
        return f"{self.confidence:.2f}%"

    def as_dict(self):
        return {"label": self.label, "confidence": round(self.confidence, 4)}


def probabilities_to_prediction(probabilities, labels) -> Prediction:
    """Pick the top class; ties go to the first label in order."""
    probs = np.asarray(probabilities, dtype=np.float64).reshape(-1)
    if probs.size == 0:
        raise InferenceError("Model returned no probabilities")
    idx = int(np.argmax(probs))
    if idx >= len(labels):
        raise InferenceError(f"Class index {idx} outside label set of size {len(labels)}")
    return Prediction(label=labels[idx], confidence=float(probs[idx]) * 100)


class InferenceEngine:
    """Runs preprocessed batches through a loaded model."""

    def __init__(self, handle: Optional[ModelHandle], default_size=IMAGE_SIZE):
        self.handle = handle
        self.default_size = default_size

    @property
    def ready(self):
        return self.handle is not None

    @property
    def labels(self):
        return self.handle.labels if self.handle else ()

    def probabilities(self, batch) -> np.ndarray:
        """Forward pass; returns a copy of the probability vector for one image."""
        output = None
        try:
            output = self.handle.model.predict(batch, verbose=0)
            probs = np.array(output[0], dtype=np.float64, copy=True).reshape(-1)
        except Exception as e:
            raise InferenceError(f"Forward pass failed: {e}") from e
        finally:
            # Per-cycle buffers are dropped on every exit path.
            del batch, output

        return probs

    def run(self, batch) -> Optional[Prediction]:
        if self.handle is None:
            return None
        probs = self.probabilities(batch)
        prediction = probabilities_to_prediction(probs, self.handle.labels)
        logger.debug("Predicted %s (%s)", prediction.label, prediction.confidence_text)
        return prediction

    def prepare(self, image):
        try:
            return preprocess(image, self.handle.input_shape, self.default_size)
        except Exception as e:
            raise InferenceError(f"Could not preprocess image: {e}") from e

    def classify(self, image) -> Optional[Prediction]:
        if self.handle is None:
            return None
        return self.run(self.prepare(image))
