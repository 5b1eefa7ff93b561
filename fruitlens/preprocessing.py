import io

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from fruitlens.config import IMAGE_SIZE
from fruitlens.errors import ImageDecodeError


def decode_image(data: bytes) -> Image.Image:
    """Decode uploaded bytes and auto-rotate mobile/desktop photos."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    img = ImageOps.exif_transpose(img)
    return img.convert("RGB")


def bgr_to_rgb(frame: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


def target_size(input_shape, default=IMAGE_SIZE):
    """(height, width, channels) for a (batch, H, W, C) model input."""
    _, height, width, channels = input_shape
    return height or default, width or default, channels or 3


def preprocess(image, input_shape, default_size=IMAGE_SIZE) -> np.ndarray:
    """
    Turn a frame or decoded image into a model-ready batch.

    Resizes bilinearly to the model's spatial size, rescales [0, 255] to
    [0, 1] and adds a leading batch dimension of 1.
    Returns float32 of shape (1, H, W, C).
    """
    height, width, channels = target_size(input_shape, default_size)

    if isinstance(image, np.ndarray):
        image = Image.fromarray(np.asarray(image, dtype=np.uint8))
    img = image.convert("L" if channels == 1 else "RGB")
    img = img.resize((width, height), Image.Resampling.BILINEAR)

    x = np.asarray(img, dtype=np.float32) / 255.0
    if channels == 1:
        x = x[..., np.newaxis]
    return np.expand_dims(x, axis=0)
