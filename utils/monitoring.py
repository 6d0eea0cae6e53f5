import time
import logging
import contextlib
from typing import Dict, Iterable, List, Optional

from app.models import AssetFailed, PageAsset

logger = logging.getLogger("storybook-app")


class StoryRunTracker:
    """
    Timing and asset outcomes for one story request.

    Stages are timed in the order they run. Failed assets are kept per page so
    the closing log line says which pages came back without an image or audio.
    """

    def __init__(self, prompt: str, page_count: int):
        self.label = f"pages={page_count} prompt_len={len(prompt)}"
        self.stages: Dict[str, float] = {}
        self.missing_images: List[int] = []
        self.missing_audio: List[int] = []
        self._started = time.monotonic()

    @contextlib.asynccontextmanager
    async def stage(self, name: str):
        started = time.monotonic()
        try:
            yield
        finally:
            self.stages[name] = round(time.monotonic() - started, 3)
            logger.debug(f"[{self.label}] {name} took {self.stages[name]:.3f}s")

    def record_assets(self, assets: Iterable[PageAsset]) -> None:
        for asset in sorted(assets, key=lambda a: a.page_number):
            if isinstance(asset.image, AssetFailed):
                self.missing_images.append(asset.page_number)
            if isinstance(asset.audio, AssetFailed):
                self.missing_audio.append(asset.page_number)

    @property
    def elapsed(self) -> float:
        return round(time.monotonic() - self._started, 3)

    def report(self, title: Optional[str] = None) -> str:
        stages = ", ".join(f"{name}={seconds}s" for name, seconds in self.stages.items())
        line = f"[{self.label}] done in {self.elapsed}s ({stages})"
        if title is not None:
            line += f" title={title!r}"
        if self.missing_images:
            line += f" missing_images={self.missing_images}"
        if self.missing_audio:
            line += f" missing_audio={self.missing_audio}"
        return line
