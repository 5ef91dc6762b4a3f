"""FastAPI dependencies for the Apple sign-in endpoints."""

from siwa.core.settings import AppleSettings
from siwa.oidc.adapter import AppleAuthAdapter


class _AdapterHolder:
    """Lazy singleton so the signing-key cache outlives single requests."""

    adapter: AppleAuthAdapter | None = None


_holder = _AdapterHolder()


def load_settings() -> AppleSettings:
    return AppleSettings()


def get_adapter() -> AppleAuthAdapter:
    """FastAPI dependency that yields the process-wide adapter."""
    if _holder.adapter is None:
        _holder.adapter = AppleAuthAdapter(load_settings().to_config())
    return _holder.adapter
