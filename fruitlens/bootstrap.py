"""
Starter model for running the demo before a trained model is available.

The network is untrained: predictions are near-uniform. It only exists so the
loader, the webcam sampler and the UI have a real artifact to work against.
"""

import json
import logging
from pathlib import Path

from fruitlens.config import DEFAULT_LABELS, IMAGE_SIZE, METADATA_FILENAME

logger = logging.getLogger(__name__)


def build_starter_model(labels=DEFAULT_LABELS, image_size=IMAGE_SIZE):
    from tensorflow.keras import layers
    from tensorflow.keras.models import Sequential

    model = Sequential(
        [
            layers.Input(shape=(image_size, image_size, 3)),
            layers.Conv2D(16, (3, 3), activation="relu"),
            layers.MaxPool2D((2, 2)),
            layers.Conv2D(32, (3, 3), activation="relu"),
            layers.MaxPool2D((2, 2)),
            layers.GlobalAveragePooling2D(),
            layers.Dense(32, activation="relu"),
            layers.Dense(len(labels), activation="softmax"),
        ],
        name="fruit_starter",
    )
    model.compile(optimizer="adam", loss="categorical_crossentropy", metrics=["accuracy"])
    return model


def save_starter_model(path, labels=DEFAULT_LABELS, image_size=IMAGE_SIZE):
    """Write the starter model plus its model_metadata.json label map."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    model = build_starter_model(labels, image_size)
    model.save(str(path))

    metadata = {
        "model_name": "fruit_starter",
        "version": "bootstrap",
        "input_shape": [image_size, image_size, 3],
        "classes": {str(i): label for i, label in enumerate(labels)},
    }
    with open(path.with_name(METADATA_FILENAME), "w") as f:
        json.dump(metadata, f, indent=2)

    logger.info("Starter model saved at %s", path)
    return path
