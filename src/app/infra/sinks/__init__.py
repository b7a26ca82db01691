"""Sinks — destinos concretos dos itens entregues pelo relay."""

from app.infra.sinks.logging_sink import LoggingCommentSink

__all__ = ["LoggingCommentSink"]
