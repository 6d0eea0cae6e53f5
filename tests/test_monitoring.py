import asyncio

import pytest

from app.models import AssetFailed, AssetReady, PageAsset
from utils.monitoring import StoryRunTracker


def page(n, image_ok=True, audio_ok=True):
    ready = AssetReady(url="data:x;base64,")
    failed = AssetFailed(reason="boom")
    return PageAsset(page_number=n, image=ready if image_ok else failed, audio=ready if audio_ok else failed)


def test_stages_are_timed_in_order():
    tracker = StoryRunTracker("a brave dragon", 2)

    async def run():
        async with tracker.stage("story_text"):
            await asyncio.sleep(0)
        async with tracker.stage("media"):
            pass

    asyncio.run(run())
    assert list(tracker.stages) == ["story_text", "media"]
    assert all(seconds >= 0 for seconds in tracker.stages.values())


def test_stage_recorded_when_it_raises():
    tracker = StoryRunTracker("x", 1)

    async def run():
        async with tracker.stage("story_text"):
            raise ValueError("bad reply")

    with pytest.raises(ValueError):
        asyncio.run(run())
    assert "story_text" in tracker.stages


def test_failed_assets_listed_by_page():
    tracker = StoryRunTracker("x", 3)
    tracker.record_assets([page(3, audio_ok=False), page(1, image_ok=False), page(2)])

    assert tracker.missing_images == [1]
    assert tracker.missing_audio == [3]
    report = tracker.report("Moon Picnic")
    assert "pages=3 prompt_len=1" in report
    assert "title='Moon Picnic'" in report
    assert "missing_images=[1]" in report
    assert "missing_audio=[3]" in report


def test_clean_run_report_has_no_failures():
    tracker = StoryRunTracker("x", 1)
    tracker.record_assets([page(1)])
    assert "missing" not in tracker.report()
