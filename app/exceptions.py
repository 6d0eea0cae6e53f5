"""
Error taxonomy for the storybook pipeline.

Only InvalidRequest, UpstreamCallError and MalformedModelOutput ever reach the
caller; AssetGenerationFailure is absorbed per page.
"""

from typing import Optional


class StorybookError(Exception):
    """Base class for all storybook pipeline errors"""


class InvalidRequest(StorybookError):
    """The incoming request was rejected before any model call"""


class UpstreamCallError(StorybookError):
    """The text-generation call itself failed (network, auth, quota, safety)"""


class GeminiSafetyException(UpstreamCallError):
    """Exception raised when Gemini blocks content due to safety filters"""

    def __init__(self, message: str, finish_reason: Optional[str] = None, blocked_categories: list = None):
        super().__init__(message)
        self.finish_reason = finish_reason
        self.blocked_categories = blocked_categories or []


class MalformedModelOutput(StorybookError):
    """The model answered but the reply could not be coerced into a story"""

    def __init__(self, message: str, preview: str = ""):
        super().__init__(message)
        self.preview = preview


class AssetGenerationFailure(StorybookError):
    """An illustration or narration sub-step failed for one page"""
