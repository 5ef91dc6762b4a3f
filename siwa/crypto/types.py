"""Type definitions for provider signing keys."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class SigningKey(BaseModel):
    """A provider public key resolved from the published key set."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kid: str
    algorithm: str
    key: Any
