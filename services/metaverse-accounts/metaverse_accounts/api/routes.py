"""HTTP route definitions for the account token endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from ..domain.errors import InvalidRequest, TokenGrantError, UnknownAccount
from ..domain.service import GrantDispatcher
from .responses import (
    EnvelopeFailure,
    EnvelopeSuccess,
    OAuthErrorResponse,
    OAuthTokenResponse,
    domain_token_page,
)

logger = logging.getLogger(__name__)

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def get_dispatcher(request: Request) -> GrantDispatcher:
    """Resolve the `GrantDispatcher` stored on the FastAPI application state."""
    dispatcher: GrantDispatcher = request.app.state.grant_dispatcher
    return dispatcher


async def request_params(request: Request) -> dict[str, str]:
    """Merge query-string parameters with any form body; form values win."""
    params = dict(request.query_params)
    if request.headers.get("content-type", "").startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        params.update({key: value for key, value in form.items() if isinstance(value, str)})
    return params


def caller_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


def sender_key(request: Request) -> str:
    """Identify the peer by host only; the ephemeral port changes per connection."""
    return request.client.host if request.client else ""


@router.post(
    "/oauth/token",
    response_model=OAuthTokenResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": OAuthErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": OAuthErrorResponse},
    },
)
def oauth_token(
    params: dict[str, str] = Depends(request_params),
    token: str | None = Depends(caller_token),
    sender: str = Depends(sender_key),
    dispatcher: GrantDispatcher = Depends(get_dispatcher),
):
    """Exchange a password or refresh token for a bearer token (OAuth body)."""
    try:
        issued = dispatcher.dispatch(params, caller_token=token, sender=sender)
    except TokenGrantError as exc:
        return JSONResponse(
            status_code=_status_for(exc),
            content=OAuthErrorResponse(error=exc.message).model_dump(),
        )
    return OAuthTokenResponse.from_token(issued)


@router.get(
    "/api/v1/token/new",
    response_model=EnvelopeSuccess,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": EnvelopeFailure}},
)
def new_domain_token(
    scope: str | None = Query(default=None),
    token: str | None = Depends(caller_token),
    dispatcher: GrantDispatcher = Depends(get_dispatcher),
):
    """Issue a token for the caller's account in the generic status/data envelope."""
    try:
        account, issued = dispatcher.issue_domain_token(token, scope)
    except UnknownAccount as exc:
        logger.warning("domain token requested by unknown caller")
        return JSONResponse(status_code=_status_for(exc), content=EnvelopeFailure().model_dump())
    return EnvelopeSuccess.for_domain_token(account, issued)


@router.get("/user/tokens/new", response_class=HTMLResponse)
def user_tokens_new(
    for_domain_server: bool | None = Query(default=None),
    token: str | None = Depends(caller_token),
    dispatcher: GrantDispatcher = Depends(get_dispatcher),
) -> Response:
    """Legacy domain-server bootstrap page; unauthenticated callers are sent to log in."""
    if not for_domain_server:
        return Response(status_code=status.HTTP_200_OK)

    issued = dispatcher.issue_domain_server_token(token)
    if issued is None:
        return RedirectResponse(
            url=get_settings().domain_token_login_page,
            status_code=status.HTTP_302_FOUND,
        )
    return HTMLResponse(content=domain_token_page(issued))


def _status_for(exc: TokenGrantError) -> int:
    if isinstance(exc, InvalidRequest):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_401_UNAUTHORIZED
