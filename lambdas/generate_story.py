import asyncio
import logging

from dotenv import load_dotenv

from app.exceptions import InvalidRequest
from app.narrative_engine import FableFactory
from settings import AppConfig
from shared.events import EventParser
from shared.responses import api_response
from shared.stories import LIVENESS_MESSAGE, run_story_request

load_dotenv()
logging.getLogger().setLevel(logging.INFO)
logger = logging.getLogger("storybook-app")

CONFIG = AppConfig.load()


def lambda_handler(event, context, config=None, factory_builder=FableFactory):
    config = config or CONFIG
    method = EventParser.http_method(event)
    if method == "GET":
        return api_response(200, {"message": LIVENESS_MESSAGE})
    if method != "POST":
        return api_response(405, {"error": "Method Not Allowed"})

    try:
        payload = EventParser.extract_payload(event)
    except InvalidRequest as e:
        return api_response(400, {"error": str(e)})

    status_code, body = asyncio.run(run_story_request(payload, config, factory_builder))
    return api_response(status_code, body)
