import logging
from typing import Any, Callable, Dict, Tuple

from app.exceptions import InvalidRequest, MalformedModelOutput, UpstreamCallError
from app.models import StoryRequest

logger = logging.getLogger("storybook-app")

LIVENESS_MESSAGE = "Storybook generator is running. POST a JSON body with a 'prompt' to create a story."


def parse_story_request(payload: Any, config) -> StoryRequest:
    return StoryRequest.from_payload(
        payload,
        default_page_count=config.default_page_count,
        max_page_count=config.max_page_count,
    )


async def run_story_request(
    payload: Any, config, factory_builder: Callable[[Any], Any]
) -> Tuple[int, Dict[str, Any]]:
    """
    Validate the body, run the pipeline and map the outcome to (status, body).
    The factory is only built once the request is valid, so a rejected request
    never touches a model provider.
    """
    try:
        request = parse_story_request(payload, config)
    except InvalidRequest as e:
        logger.info(f"Rejected story request: {e}")
        return 400, {"error": str(e)}

    logger.info(f"Received story request: prompt_length={len(request.prompt)}, page_count={request.page_count}")
    try:
        factory = factory_builder(config)
        result = await factory.generate_story_package(request)
    except (UpstreamCallError, MalformedModelOutput) as e:
        logger.error(f"Story generation failed: {e}")
        return 500, {"error": str(e)}
    except Exception:
        logger.exception("Unexpected error during story generation")
        return 500, {"error": "Story generation failed due to an unexpected server error."}

    return 200, {"story": result.to_response()}
