import numpy as np
import pytest
import requests

from fruitlens.api_client import BackendClassifier
from fruitlens.errors import InferenceError, ModelLoadError
from fruitlens.inference import Prediction


class StubResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.payload is None:
            raise ValueError("no JSON body")
        return self.payload


class StubHTTP:
    def __init__(self, get=None, post=None):
        self._get = get
        self._post = post
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append(("GET", url, None))
        if isinstance(self._get, Exception):
            raise self._get
        return self._get

    def post(self, url, files=None, timeout=None):
        self.requests.append(("POST", url, files))
        if isinstance(self._post, Exception):
            raise self._post
        return self._post


def test_check_reads_labels():
    http = StubHTTP(get=StubResponse({"model_loaded": True, "labels": ["apple", "banana"]}))
    client = BackendClassifier("http://backend.test/", session=http)

    client.check()

    assert client.labels == ("apple", "banana")
    assert http.requests[0][:2] == ("GET", "http://backend.test/")


def test_check_without_model():
    http = StubHTTP(get=StubResponse({"model_loaded": False}))
    with pytest.raises(ModelLoadError, match="no model"):
        BackendClassifier("http://backend.test", session=http).check()


def test_check_unreachable():
    http = StubHTTP(get=requests.ConnectionError("refused"))
    with pytest.raises(ModelLoadError, match="unreachable"):
        BackendClassifier("http://backend.test", session=http).check()


def test_classify_posts_jpeg():
    http = StubHTTP(post=StubResponse({"label": "banana", "confidence": 88.5}))
    client = BackendClassifier("http://backend.test", session=http)

    prediction = client.classify(np.zeros((480, 640, 3), dtype=np.uint8))

    assert prediction == Prediction("banana", 88.5)
    method, url, files = http.requests[0]
    assert (method, url) == ("POST", "http://backend.test/predict")
    name, data, content_type = files["file"]
    assert content_type == "image/jpeg"
    assert data[:2] == b"\xff\xd8"


@pytest.mark.parametrize(
    "post",
    [
        StubResponse({"error": "boom"}, status=500),
        StubResponse({"unexpected": True}),
        requests.Timeout("slow"),
    ],
)
def test_classify_failures_are_inference_errors(post):
    client = BackendClassifier("http://backend.test", session=StubHTTP(post=post))
    with pytest.raises(InferenceError):
        client.classify(np.zeros((8, 8, 3), dtype=np.uint8))
