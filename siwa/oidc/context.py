"""Request and session seams used by the adapter core."""

from collections.abc import Mapping, MutableMapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


class Session(Protocol):
    """Key-value store scoped to one browser session."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> Any: ...


class RequestContext(Protocol):
    """The parts of an incoming HTTP request the adapter reads."""

    method: str
    params: Mapping[str, str]
    session: Session
    full_host: str


class DictSession:
    """Session backed by any mutable mapping (e.g. Starlette's ``request.session``)."""

    def __init__(self, store: MutableMapping[str, Any] | None = None) -> None:
        self._store: MutableMapping[str, Any] = {} if store is None else store

    def get(self, key: str) -> Any:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def delete(self, key: str) -> Any:
        """Remove and return the value stored under ``key``."""
        return self._store.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._store


class CallbackRequest(BaseModel):
    """Plain request context, independent of any web framework."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str = "GET"
    params: dict[str, str] = Field(default_factory=dict)
    session: DictSession = Field(default_factory=DictSession)
    full_host: str = "http://localhost"
