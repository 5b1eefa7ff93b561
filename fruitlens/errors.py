class FruitLensError(Exception):
    """Base class for errors raised by fruitlens."""


class ModelLoadError(FruitLensError):
    """The model artifact is missing, unreadable or incompatible."""


class CameraAccessError(FruitLensError):
    """The camera could not be opened or stopped delivering frames."""


class InferenceError(FruitLensError):
    """A forward pass failed."""


class ImageDecodeError(FruitLensError):
    """Uploaded bytes are not a decodable image."""
