"""Use case: polling de comentários de commit com checkpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from api.connectors.github.models import CommitComment
from api.connectors.github.request_builder import RequestOptions

if TYPE_CHECKING:
    import httpx

    from api.connectors.github.executor import RequestExecutor
    from app.protocols.checkpoint_store import CheckpointStoreProtocol
    from app.protocols.item_sink import CommentSinkProtocol

logger = logging.getLogger(__name__)

_COMMENTS_ADAPTER: TypeAdapter[list[CommitComment]] = TypeAdapter(list[CommitComment])


class CommitCommentPoller:
    """Busca as páginas mais recentes de comentários e entrega os novos.

    Itens com id <= checkpoint nunca são entregues. O checkpoint avança
    após cada item entregue, então uma falha no meio da passada não
    reprocessa o que já saiu.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        checkpoint: CheckpointStoreProtocol,
        sink: CommentSinkProtocol,
        owner: str,
        repo: str,
        per_page: int = 30,
    ) -> None:
        self._executor = executor
        self._checkpoint = checkpoint
        self._sink = sink
        self._owner = owner
        self._repo = repo
        self._per_page = per_page

    @property
    def repository(self) -> str:
        return f"{self._owner}/{self._repo}"

    @property
    def _comments_path(self) -> str:
        return f"/repos/{self._owner}/{self._repo}/comments"

    async def _fetch_page(
        self,
        target: str,
        options: RequestOptions | None = None,
    ) -> tuple[list[CommitComment], httpx.Response]:
        response = await self._executor.execute(target, options, preview=True)
        try:
            return _COMMENTS_ADAPTER.validate_python(response.json()), response
        except (ValidationError, ValueError) as exc:
            raise ValueError(f"Resposta de comentários inválida para {self.repository}") from exc

    async def fetch_latest(self, since: int = 0) -> list[CommitComment]:
        """Comentários da última página, recuando via rel="prev" até cobrir `since`.

        A API lista do mais antigo ao mais novo. Com ``since`` > 0, páginas
        anteriores são buscadas enquanto o menor id obtido ainda estiver
        acima do checkpoint.
        """
        options = RequestOptions(params={"per_page": self._per_page})
        comments, response = await self._fetch_page(self._comments_path, options)
        last_url = response.links.get("last", {}).get("url")
        if last_url:
            comments, response = await self._fetch_page(last_url)

        pages = 1
        while since > 0 and comments and min(c.id for c in comments) > since:
            prev_url = response.links.get("prev", {}).get("url")
            if not prev_url:
                break
            older, response = await self._fetch_page(prev_url)
            comments = older + comments
            pages += 1

        if pages > 1:
            logger.info(
                "commit_comments_backfill",
                extra={"repository": self.repository, "pages": pages, "checkpoint_id": since},
            )
        return comments

    async def poll(self, context: Any = None) -> int:
        """Uma passada de polling.

        Returns:
            Quantidade de comentários entregues.
        """
        last_processed = await self._checkpoint.get(default=0)
        comments = await self.fetch_latest(since=last_processed)

        if last_processed == 0:
            if comments:
                newest = max(comment.id for comment in comments)
                await self._checkpoint.set(newest)
                logger.info(
                    "checkpoint_seeded",
                    extra={"repository": self.repository, "checkpoint_id": newest},
                )
            return 0

        return await self.deliver_new(comments, last_processed)

    async def deliver_new(self, comments: list[CommitComment], last_processed: int) -> int:
        """Entrega, em ordem crescente, os comentários acima do checkpoint."""
        pending = sorted(
            (comment for comment in comments if comment.id > last_processed),
            key=lambda comment: comment.id,
        )
        for comment in pending:
            await self._sink.deliver(comment, self.repository)
            await self._checkpoint.set(comment.id)

        if pending:
            logger.info(
                "commit_comments_processed",
                extra={"repository": self.repository, "count": len(pending)},
            )
        return len(pending)

    async def process_single(self, comment: CommitComment) -> bool:
        """Entrega um comentário vindo de webhook, se ainda não processado."""
        last_processed = await self._checkpoint.get(default=0)
        if comment.id <= last_processed:
            logger.debug(
                "commit_comment_already_processed",
                extra={"comment_id": comment.id, "checkpoint_id": last_processed},
            )
            return False
        await self._sink.deliver(comment, self.repository)
        await self._checkpoint.set(comment.id)
        return True
