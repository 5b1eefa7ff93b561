"""
Capture flows: the periodic webcam sampler and one-shot uploads.

Every function takes the ClassifierSession explicitly. Errors are caught here,
at the flow boundary, and turned into session notices; nothing propagates to
the UI.
"""

import logging
import weakref

import cv2

from fruitlens.errors import CameraAccessError, ImageDecodeError, InferenceError
from fruitlens.preprocessing import bgr_to_rgb, decode_image
from fruitlens.sampling import SamplingLoop

logger = logging.getLogger(__name__)


def open_camera(index=0, width=640, height=480):
    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        cap.release()
        raise CameraAccessError(f"Could not open video source {index}")
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    return cap


# ----------------------------
# Webcam flow
# ----------------------------
def start_webcam(session, settings, camera_factory=open_camera) -> bool:
    """Open the camera and start sampling. Returns whether the webcam is active."""
    webcam = session.webcam
    with webcam.lock:
        if webcam.active:
            logger.debug("Webcam already active")
            return True

        try:
            capture = camera_factory(settings.camera_index, settings.camera_width, settings.camera_height)
        except CameraAccessError as e:
            logger.warning("Camera access failed: %s", e)
            session.notify("error", "Could not access the camera. Check that it is connected and permitted.")
            return False

        session_ref = weakref.ref(session)

        def tick():
            current = session_ref()
            if current is not None:
                sample_webcam(current, loop)

        loop = SamplingLoop(settings.sample_interval, tick, name="webcam-sampler")
        webcam.capture = capture
        webcam.active = True
        webcam.loop = loop
        loop.start()

    logger.info("Webcam started, sampling every %.2fs", settings.sample_interval)
    return True


def _is_current(webcam, loop):
    return webcam.active and (loop is None or webcam.loop is loop)


def sample_webcam(session, loop=None):
    """
    One sampler tick: grab a frame, show it, classify it if a model is ready.

    `loop` is the sampler that issued the tick. Once the webcam is stopped, or
    restarted with another sampler, the tick's frame and prediction are dropped.
    """
    webcam = session.webcam
    capture = webcam.capture
    if not _is_current(webcam, loop) or capture is None:
        return None

    ok, frame = capture.read()
    if not ok or frame is None:
        logger.warning("No frame received from camera")
        return None

    frame = bgr_to_rgb(frame)
    with webcam.lock:
        if not _is_current(webcam, loop):
            return None
        webcam.frame = frame

    prediction = _predict(session, frame)
    if prediction is None:
        return None

    with webcam.lock:
        if not _is_current(webcam, loop):
            logger.debug("Dropping prediction from a stopped sampler")
            return None
        session.set_prediction(prediction)
    return prediction


def release_webcam(webcam) -> bool:
    """Stop the sampler and free the camera. Safe to call any number of times."""
    with webcam.lock:
        was_active = webcam.active
        loop, webcam.loop = webcam.loop, None
        capture, webcam.capture = webcam.capture, None
        webcam.frame = None
        webcam.active = False

    # A running tick takes the lock to publish, so cancel without holding it.
    if loop is not None:
        loop.cancel()
    if capture is not None:
        capture.release()

    if was_active:
        logger.info("Webcam stopped")
    return was_active


def stop_webcam(session):
    if release_webcam(session.webcam):
        session.clear_prediction()


# ----------------------------
# Upload flow
# ----------------------------
def classify_upload(session, data: bytes):
    """Decode an uploaded file, show it as preview and classify it once."""
    if not session.ready:
        return None

    try:
        img = decode_image(data)
    except ImageDecodeError as e:
        logger.warning("Rejected upload: %s", e)
        session.notify("error", "Could not read that file as an image.")
        return None

    session.preview = img
    prediction = _predict(session, img)
    if prediction is not None:
        session.set_prediction(prediction)
    return prediction


def _predict(session, image):
    if not session.ready:
        return None
    try:
        return session.classifier.classify(image)
    except InferenceError as e:
        logger.error("Prediction failed: %s", e)
        session.notify("warning", f"Prediction failed: {e}")
        return None
