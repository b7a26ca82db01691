"""Use cases do relay GitHub."""

from .handle_webhook_event import WebhookEventResult, handle_verified_webhook_event
from .poll_commit_comments import CommitCommentPoller

__all__ = [
    "CommitCommentPoller",
    "WebhookEventResult",
    "handle_verified_webhook_event",
]
