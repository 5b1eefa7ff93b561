"""FruitLens: live fruit classification from a webcam or uploaded images."""

__version__ = "0.1.0"
