from typing import Dict, Any

from pydantic import BaseModel, Field

DEFAULT_TITLE = "🎉 New Job Matches!"


def _default_data() -> Dict[str, Any]:
    return {"type": "job_matches"}


class PushMessage(BaseModel):
    """A single Expo push message."""
    to: str
    title: str = DEFAULT_TITLE
    body: str
    sound: str = "default"
    priority: str = "high"
    data: Dict[str, Any] = Field(default_factory=_default_data)


class NotificationMessageBuilder:
    def __init__(self, title: str = DEFAULT_TITLE):
        self.title = title

    @staticmethod
    def build_body(match_count: int) -> str:
        """Summary line for the daily match digest."""
        if match_count == 1:
            return "You have 1 new job match! Check to apply."
        return f"You have {match_count} new job matches! Check to apply."

    def build_message(self, push_token: str, match_count: int) -> PushMessage:
        return PushMessage(
            to=push_token,
            title=self.title,
            body=self.build_body(match_count),
        )
