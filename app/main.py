import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

from dotenv import load_dotenv

load_dotenv()

from typing import Callable

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.model_providers import AudioModel, ImageModel, TextModel
from app.narrative_engine import FableFactory
from settings import AppConfig, StorybookConfig
from shared.responses import CORS_HEADERS
from shared.stories import LIVENESS_MESSAGE, run_story_request

logger = logging.getLogger("storybook-app")

app = FastAPI()
app.state.config = AppConfig.load()


def get_config() -> StorybookConfig:
    return app.state.config


def get_factory_builder() -> Callable[[StorybookConfig], FableFactory]:
    return FableFactory


@app.get("/")
@app.get("/generate-ai")
def read_root():
    return {"message": LIVENESS_MESSAGE}


@app.post("/generate-ai")
async def generate_story_endpoint(
    request: Request,
    config: StorybookConfig = Depends(get_config),
    factory_builder: Callable = Depends(get_factory_builder),
):
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(
            status_code=400, content={"error": "Request body is not valid JSON"}, headers=CORS_HEADERS
        )

    status_code, body = await run_story_request(payload, config, factory_builder)
    return JSONResponse(status_code=status_code, content=body, headers=CORS_HEADERS)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (404, 405) use the same {"error": ...} body as the story endpoint"""
    headers = {**(exc.headers or {}), **CORS_HEADERS}
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=headers)


@app.get("/models")
def get_available_models():
    """Models the deployment can be configured with, and the ones in use"""
    config = app.state.config
    return {
        "text_models": [m.value for m in TextModel],
        "image_models": [m.value for m in ImageModel],
        "audio_models": [m.value for m in AudioModel],
        "active": {
            "text_model": config.text_model.value,
            "image_model": config.image_model.value,
            "audio_model": config.audio_model.value,
        },
    }
