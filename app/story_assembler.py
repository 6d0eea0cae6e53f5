import logging
from typing import Mapping

from app.models import PageAsset, StoryDocument, StoryPage, StoryResult

logger = logging.getLogger("storybook-app")


def assemble(doc: StoryDocument, assets: Mapping[int, PageAsset]) -> StoryResult:
    """
    Merge each page with its generated assets, keeping the document's page order.
    A page with no asset entry, or a failed asset, gets a null url.
    """
    pages = []
    for draft in doc.pages:
        asset = assets.get(draft.page_number)
        if asset is None:
            logger.warning(f"No assets recorded for page {draft.page_number}")
            image_url = audio_url = None
        else:
            image_url, audio_url = asset.image.url, asset.audio.url

        pages.append(
            StoryPage(
                page_number=draft.page_number,
                text=draft.text,
                image_prompt=draft.image_prompt,
                image_url=image_url,
                audio_url=audio_url,
            )
        )
    return StoryResult(title=doc.title, pages=pages)
