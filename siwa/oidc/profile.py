"""Profile assembly from verified claims and the one-time user payload."""

import json
import logging
from typing import Any

from siwa.oidc.context import RequestContext
from siwa.oidc.types import IDTokenClaims, Profile, UserInfoPayload

logger = logging.getLogger(__name__)


def coerce_bool(value: Any) -> bool:
    """Apple sends some flags as booleans and some as the string "true"."""
    return value is True or value == "true"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (str, bytes, dict, list, tuple, set)) and not value


def prune(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None and empty values, recursing into nested dicts."""
    pruned: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = prune(value)
        if not _is_blank(value):
            pruned[key] = value
    return pruned


def parse_user_info(raw: str | None) -> dict[str, Any]:
    """Parse the ``user`` JSON blob; anything unusable yields an empty dict."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        logger.info("Ignoring unparseable user payload")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class ProfileAssembler:
    """Builds the pruned profile and the raw ``extra`` bundle."""

    def assemble(
        self, claims: IDTokenClaims, ctx: RequestContext, id_token: str
    ) -> tuple[Profile, dict[str, Any]]:
        user_info = parse_user_info(ctx.params.get("user"))
        names = UserInfoPayload.from_raw(user_info)

        parts = [p for p in (names.first_name, names.last_name) if p]
        profile = Profile(
            sub=claims.sub,
            email=claims.email,
            first_name=names.first_name,
            last_name=names.last_name,
            name=" ".join(parts) if parts else claims.email,
            email_verified=coerce_bool(claims.email_verified),
            is_private_email=coerce_bool(claims.is_private_email),
        )
        extra = prune(
            {
                "raw_info": {
                    "id_info": claims.body,
                    "user_info": user_info,
                    "id_token": id_token,
                }
            }
        )
        return profile, extra

    @staticmethod
    def info(profile: Profile) -> dict[str, Any]:
        """Profile as a pruned dict."""
        return prune(profile.model_dump())
