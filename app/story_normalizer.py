"""
Best-effort decoding of the text model's reply into a StoryDocument.

The model is asked for bare JSON but routinely wraps it in code fences or
prose. Decoding is two-tier: strict parse of the fence-stripped text, then
the span from the first '{' to the last '}'. Nothing beyond that.
"""

import json
import logging
import re
from typing import Any, List, Optional, Union

from pydantic import BaseModel

from app.exceptions import MalformedModelOutput
from app.models import PageDraft, StoryDocument

logger = logging.getLogger("storybook-app")

DEFAULT_TITLE = "AI Storybook"
PREVIEW_LIMIT = 500
IMAGE_PROMPT_FALLBACK_LENGTH = 500

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```$")


class ParsedStory(BaseModel):
    document: StoryDocument


class UnparseableStory(BaseModel):
    reason: str
    preview: str


NormalizationResult = Union[ParsedStory, UnparseableStory]


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _LEADING_FENCE.sub("", text, count=1)
    if text.endswith("```"):
        text = _TRAILING_FENCE.sub("", text).strip()
    return text


def _decode_json_object(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        pass

    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object found in model output")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"model returned invalid JSON ({e.msg})")
    except RecursionError:
        raise ValueError("model returned JSON nested too deeply to decode")


def _declared_page_number(page: dict) -> Optional[int]:
    value = page.get("page_number", page.get("pageNumber"))
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            number = int(value.strip())
        except ValueError:
            return None
        return number if number >= 1 else None
    return None


def _page_text(page: dict) -> str:
    text = page.get("text")
    if text is None:
        return ""
    return text if isinstance(text, str) else str(text)


def _page_image_prompt(page: dict, text: str) -> str:
    for key in ("imagePrompt", "image_prompt"):
        value = page.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return text[:IMAGE_PROMPT_FALLBACK_LENGTH]


def _build_document(data: Any) -> StoryDocument:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object at the top level")

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        title = DEFAULT_TITLE

    raw_pages = data.get("pages")
    if raw_pages is None:
        raw_pages = []
    if not isinstance(raw_pages, list):
        raise ValueError("'pages' must be a list")
    if not all(isinstance(p, dict) for p in raw_pages):
        raise ValueError("every page must be a JSON object")

    declared = [_declared_page_number(p) for p in raw_pages]
    reliable = None not in declared and len(set(declared)) == len(declared)
    if reliable:
        numbered = sorted(zip(declared, raw_pages), key=lambda pair: pair[0])
    else:
        numbered = list(zip(range(1, len(raw_pages) + 1), raw_pages))

    pages: List[PageDraft] = []
    for number, page in numbered:
        text = _page_text(page)
        pages.append(
            PageDraft(page_number=number, text=text, image_prompt=_page_image_prompt(page, text))
        )
    return StoryDocument(title=title, pages=pages)


def parse_story_reply(raw: str) -> NormalizationResult:
    """Pure, never raises: returns ParsedStory or UnparseableStory"""
    text = strip_code_fences(raw or "")
    try:
        document = _build_document(_decode_json_object(text))
    except ValueError as e:
        return UnparseableStory(reason=str(e), preview=text[:PREVIEW_LIMIT])
    return ParsedStory(document=document)


def normalize(raw: str) -> StoryDocument:
    result = parse_story_reply(raw)
    if isinstance(result, UnparseableStory):
        logger.warning(f"Unparseable model output ({result.reason}); preview: {result.preview[:200]!r}")
        raise MalformedModelOutput(
            f"Unable to parse story JSON from model output: {result.reason}. "
            f"Output preview: {result.preview}",
            preview=result.preview,
        )
    return result.document
