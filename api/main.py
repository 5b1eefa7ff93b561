# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse

from fruitlens.config import Settings, configure_logging
from fruitlens.errors import ImageDecodeError, InferenceError, ModelLoadError
from fruitlens.inference import InferenceEngine, probabilities_to_prediction
from fruitlens.model_loader import ModelLoader
from fruitlens.preprocessing import decode_image

logger = logging.getLogger(__name__)


def create_app(settings=None, loader=None) -> FastAPI:
    settings = settings or Settings.from_env()
    loader = loader or ModelLoader(
        settings.model_source, labels=settings.labels, timeout=settings.request_timeout
    )

    # ----------------------------
    # Load model once at startup
    # ----------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            handle = loader.load()
        except ModelLoadError:
            handle = None
        app.state.engine = InferenceEngine(handle, default_size=settings.image_size)
        yield

    app = FastAPI(title="FruitLens API", lifespan=lifespan)
    app.state.loader = loader
    app.state.engine = InferenceEngine(None)

    # ----------------------------
    # Health check
    # ----------------------------
    @app.get("/")
    def health():
        handle = app.state.engine.handle
        return {
            "status": loader.status.value,
            "model_loaded": handle is not None,
            "labels": list(handle.labels) if handle else [],
            "input_shape": list(handle.input_shape) if handle else None,
            "error": str(loader.error) if loader.error else None,
        }

    # ----------------------------
    # Prediction endpoint
    # ----------------------------
    @app.post("/predict")
    async def predict(file: UploadFile = File(...)):
        engine = app.state.engine
        if not engine.ready:
            return JSONResponse(status_code=503, content={"error": "model unavailable"})

        try:
            img = decode_image(await file.read())
        except ImageDecodeError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})

        try:
            probs = engine.probabilities(engine.prepare(img))
            prediction = probabilities_to_prediction(probs, engine.handle.labels)
        except InferenceError as e:
            logger.error("Prediction failed: %s", e)
            return JSONResponse(status_code=500, content={"error": str(e)})

        return {
            **prediction.as_dict(),
            "probabilities": {
                label: float(p) for label, p in zip(engine.handle.labels, probs)
            },
        }

    return app


configure_logging(Settings.from_env().log_level)
app = create_app()
