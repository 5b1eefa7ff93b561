"""
bootstrap_model.py

Writes an untrained starter classifier to models/ so the demo can run end to end.

Usage:
    python bootstrap_model.py
    python bootstrap_model.py --labels apple,banana,orange,pear --output models/fruit_model.keras
"""

import argparse

from fruitlens.config import DEFAULT_LABELS, IMAGE_SIZE, MODEL_PATH, configure_logging
from fruitlens.bootstrap import save_starter_model


def main(argv=None):
    p = argparse.ArgumentParser(description="Create a starter fruit classifier")
    p.add_argument("--output", default=str(MODEL_PATH), help="Where to save the .keras file")
    p.add_argument("--labels", default=",".join(DEFAULT_LABELS), help="Comma separated class names")
    p.add_argument("--image-size", type=int, default=IMAGE_SIZE)
    args = p.parse_args(argv)

    configure_logging()
    labels = [label.strip() for label in args.labels.split(",") if label.strip()]
    path = save_starter_model(args.output, labels=labels, image_size=args.image_size)
    print(f"✅ Starter model created at {path}")


if __name__ == "__main__":
    main()
