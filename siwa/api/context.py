"""Request context built from a Starlette request."""

from fastapi import Request

from siwa.oidc.context import CallbackRequest, DictSession


async def request_context(request: Request) -> CallbackRequest:
    """Merge query and form parameters (form wins) and wrap the session."""
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({k: v for k, v in form.items() if isinstance(v, str)})
    return CallbackRequest(
        method=request.method,
        params=params,
        session=DictSession(request.session),
        full_host=f"{request.url.scheme}://{request.url.netloc}",
    )
