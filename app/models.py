from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.exceptions import InvalidRequest


class StoryRequest(BaseModel):
    prompt: str
    page_count: int = Field(default=3, ge=1)

    @classmethod
    def from_payload(
        cls, data: Any, default_page_count: int = 3, max_page_count: int = 10
    ) -> "StoryRequest":
        """Validate a decoded request body, raising InvalidRequest on bad input"""
        if not isinstance(data, Mapping):
            raise InvalidRequest("Request body must be a JSON object")

        prompt = data.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidRequest("Missing 'prompt' in request body")

        raw_count = data.get("pageCount", data.get("page_count"))
        if raw_count is None or raw_count == "":
            page_count = default_page_count
        elif isinstance(raw_count, bool):
            raise InvalidRequest("'pageCount' must be an integer")
        elif isinstance(raw_count, int):
            page_count = raw_count
        elif isinstance(raw_count, str) and raw_count.strip().isdecimal():
            try:
                page_count = int(raw_count.strip())
            except ValueError:
                raise InvalidRequest("'pageCount' must be an integer")
        else:
            raise InvalidRequest("'pageCount' must be an integer")

        if page_count < 1 or page_count > max_page_count:
            raise InvalidRequest(f"'pageCount' must be between 1 and {max_page_count}")

        return cls(prompt=prompt.strip(), page_count=page_count)


class PageDraft(BaseModel):
    """One normalized page as the model described it"""

    model_config = ConfigDict(frozen=True)

    page_number: int
    text: str
    image_prompt: str


class StoryDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    pages: List[PageDraft] = []


class AssetReady(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["ready"] = "ready"
    url: str


class AssetFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    reason: str

    @property
    def url(self) -> None:
        return None


Asset = Union[AssetReady, AssetFailed]


class PageAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_number: int
    image: Asset
    audio: Asset


class StoryPage(BaseModel):
    """A page as returned to the client: draft fields plus asset urls"""

    model_config = ConfigDict(populate_by_name=True)

    page_number: int
    text: str
    image_prompt: str = Field(alias="imagePrompt")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    audio_url: Optional[str] = Field(default=None, alias="audioUrl")


class StoryResult(BaseModel):
    title: str
    pages: List[StoryPage] = []

    def to_response(self) -> Dict[str, Any]:
        """Wire format: page_number, text, imagePrompt, imageUrl, audioUrl per page"""
        return self.model_dump(by_alias=True)
