"""Shared base for endpoint operations and request payload serialization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

from pydantic import BaseModel

from infrastructure.api.client import ApiClient


class ApiOperations:
    """Shared plumbing for endpoint operation classes."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    @property
    def client(self) -> ApiClient:
        return self._client


def to_payload(data: Any) -> Any:
    """Render a request body from a model, dataclass or mapping."""
    if data is None:
        return None
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, Mapping):
        return dict(data)
    return data
