import numpy as np
import pytest

from fruitlens.config import Settings
from fruitlens.inference import InferenceEngine
from fruitlens.model_loader import ModelHandle, ModelStatus
from fruitlens.session import ClassifierSession


class FakeModel:
    """Stands in for a Keras model: fixed probabilities, records every call."""

    def __init__(self, probabilities=(0.1, 0.7, 0.2), input_shape=(None, 128, 128, 3)):
        self.probabilities = np.asarray(probabilities, dtype=np.float32)
        self.input_shape = input_shape
        self.output_shape = (None, len(self.probabilities))
        self.calls = []
        self.error = None

    def predict(self, batch, verbose=0):
        self.calls.append(np.array(batch, copy=True))
        if self.error is not None:
            raise self.error
        return self.probabilities[np.newaxis, :]


class FakeCamera:
    """Mimics cv2.VideoCapture: hands out BGR frames until released."""

    def __init__(self, frame=None, ok=True):
        self.frame = frame if frame is not None else np.zeros((480, 640, 3), dtype=np.uint8)
        self.ok = ok
        self.reads = 0
        self.released = False

    def read(self):
        self.reads += 1
        if self.released:
            return False, None
        return self.ok, self.frame.copy()

    def release(self):
        self.released = True


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def handle(fake_model):
    return ModelHandle(model=fake_model, input_shape=fake_model.input_shape, labels=("A", "B", "C"))


@pytest.fixture
def engine(handle):
    return InferenceEngine(handle)


@pytest.fixture
def session(engine):
    s = ClassifierSession(classifier=engine, model_status=ModelStatus.READY)
    yield s
    s.close()


@pytest.fixture
def settings():
    # Long interval so background ticks never fire unless a test asks for them.
    return Settings(sample_interval=30.0)


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def camera_factory(camera):
    calls = []

    def factory(index, width, height):
        calls.append((index, width, height))
        return camera

    factory.calls = calls
    return factory
