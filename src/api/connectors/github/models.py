"""Modelos Pydantic das respostas da API GitHub consumidas pelo relay."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class InstallationResponse(BaseModel):
    """GET /repos/{owner}/{repo}/installation."""

    model_config = ConfigDict(extra="ignore")

    id: int


class InstallationTokenResponse(BaseModel):
    """POST /app/installations/{id}/access_tokens."""

    model_config = ConfigDict(extra="ignore")

    token: str
    expires_at: datetime | None = None


class CommentAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str
    id: int | None = None


class CommitComment(BaseModel):
    """Comentário de commit (REST e payload de webhook commit_comment)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    body: str = ""
    commit_id: str = ""
    path: str | None = None
    line: int | None = None
    html_url: str = ""
    user: CommentAuthor | None = None
    created_at: datetime | None = None
