"""Clients for the remote generation service."""

from .client import ClientSettings, FeedbackClient, JsonRpcTransport

__all__ = ["ClientSettings", "FeedbackClient", "JsonRpcTransport"]
