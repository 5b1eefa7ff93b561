import io

import numpy as np
import requests
from PIL import Image

from fruitlens.config import REQUEST_TIMEOUT
from fruitlens.errors import InferenceError, ModelLoadError
from fruitlens.inference import Prediction


def _encode_jpeg(image, quality=90):
    if isinstance(image, np.ndarray):
        image = Image.fromarray(np.asarray(image, dtype=np.uint8))
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


class BackendClassifier:
    """Classifies images through the FruitLens inference API instead of a local model."""

    def __init__(self, base_url, timeout=REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.labels = ()

    def _url(self, endpoint):
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def check(self) -> dict:
        """Health check; the backend stands in for the model loader."""
        try:
            r = self.http.get(self._url("/"), timeout=self.timeout)
            r.raise_for_status()
            health = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ModelLoadError(f"Backend at {self.base_url} is unreachable: {e}") from e
        if not health.get("model_loaded"):
            raise ModelLoadError(f"Backend at {self.base_url} has no model loaded")
        self.labels = tuple(health.get("labels") or ())
        return health

    def classify(self, image) -> Prediction:
        files = {"file": ("frame.jpg", _encode_jpeg(image), "image/jpeg")}
        try:
            r = self.http.post(self._url("/predict"), files=files, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
            return Prediction(label=body["label"], confidence=float(body["confidence"]))
        except (requests.RequestException, ValueError, KeyError) as e:
            raise InferenceError(f"Backend prediction failed: {e}") from e
