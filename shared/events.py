import json
import base64
import logging
from typing import Any, Dict

from app.exceptions import InvalidRequest

logger = logging.getLogger("storybook-app")


class EventParser:
    """Utility for parsing API Gateway / Netlify function events"""

    @staticmethod
    def http_method(event: Dict[str, Any]) -> str:
        method = event.get("httpMethod")
        if not method:
            method = ((event.get("requestContext") or {}).get("http") or {}).get("method", "")
        return method.upper()

    @staticmethod
    def extract_payload(event: Dict[str, Any]) -> Any:
        """Decoded JSON body; an absent body is an empty object"""
        body = event.get("body")
        if body is None or body == "":
            return {}

        if event.get("isBase64Encoded", False):
            try:
                body = base64.b64decode(body).decode("utf-8")
            except (ValueError, UnicodeDecodeError) as e:
                logger.error(f"Failed to decode base64 body: {str(e)}")
                raise InvalidRequest("Invalid base64 encoding in request body")

        if isinstance(body, (str, bytes)):
            try:
                return json.loads(body)
            except json.JSONDecodeError:
                logger.error("Failed to parse JSON body")
                raise InvalidRequest("Request body is not valid JSON")
        return body
