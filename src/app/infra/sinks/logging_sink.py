"""Sink que apenas registra os comentários entregues (dev e integração)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.item_sink import CommentSinkProtocol

if TYPE_CHECKING:
    from api.connectors.github.models import CommitComment

logger = logging.getLogger(__name__)


class LoggingCommentSink(CommentSinkProtocol):
    """Loga metadados do comentário; o corpo não vai para o log."""

    def __init__(self) -> None:
        self.delivered = 0

    async def deliver(self, comment: CommitComment, repository: str) -> None:
        self.delivered += 1
        logger.info(
            "commit_comment_delivered",
            extra={
                "repository": repository,
                "comment_id": comment.id,
                "commit_id": comment.commit_id[:12],
                "author": comment.user.login if comment.user else None,
                "html_url": comment.html_url,
            },
        )
