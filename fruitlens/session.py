import logging
import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Optional

from fruitlens.api_client import BackendClassifier
from fruitlens.capture import release_webcam
from fruitlens.errors import ModelLoadError
from fruitlens.inference import InferenceEngine, Prediction
from fruitlens.model_loader import ModelLoader, ModelStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    level: str  # "error" | "warning" | "info"
    message: str


@dataclass
class WebcamState:
    active: bool = False
    loop: Any = None
    capture: Any = None
    frame: Any = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


@dataclass(eq=False)
class ClassifierSession:
    """
    Everything one UI session needs, passed explicitly to each flow.

    `classifier` is anything with a `classify(image) -> Prediction | None`
    method: a local InferenceEngine or a BackendClassifier.
    """

    classifier: Any = None
    model_status: ModelStatus = ModelStatus.LOADING
    prediction: Optional[Prediction] = None
    preview: Any = None
    webcam: WebcamState = field(default_factory=WebcamState)
    notice: Optional[Notice] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        # Camera hardware is released even if the session is dropped without close().
        self._finalizer = weakref.finalize(self, release_webcam, self.webcam)

    @property
    def ready(self):
        return self.model_status is ModelStatus.READY and self.classifier is not None

    def set_prediction(self, prediction):
        with self.lock:
            self.prediction = prediction

    def clear_prediction(self):
        with self.lock:
            self.prediction = None

    def notify(self, level, message):
        with self.lock:
            self.notice = Notice(level, message)

    def clear_notice(self):
        with self.lock:
            self.notice = None

    def close(self):
        self._finalizer()
        self.clear_prediction()


def load_classifier(settings, loader=None):
    """
    Run the model loader once and return something that can classify.

    With a backend URL configured the remote service's health check plays the
    loader's role. Raises ModelLoadError when no model is available.
    """
    if settings.backend_url:
        classifier = BackendClassifier(settings.backend_url, timeout=settings.request_timeout)
        classifier.check()
        return classifier

    loader = loader or ModelLoader(settings.model_source, labels=settings.labels, timeout=settings.request_timeout)
    return InferenceEngine(loader.load(), default_size=settings.image_size)


def create_session(settings, load=load_classifier) -> ClassifierSession:
    """A fresh session; a failed load leaves it FAILED with an error notice."""
    session = ClassifierSession()
    try:
        session.classifier = load(settings)
    except ModelLoadError as e:
        logger.error("Model unavailable: %s", e)
        session.model_status = ModelStatus.FAILED
        session.notify("error", f"Could not load the model. {e}")
        return session

    session.model_status = ModelStatus.READY
    return session
