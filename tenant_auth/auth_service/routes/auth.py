"""
Registration, login, token verification and user lookup endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from ..schemas import (
    ErrorMessage,
    Token,
    TokenStatus,
    TokenVerifyRequest,
    UserCreate,
    UserLogin,
    UserName,
)
from ..service import AuthService, get_auth_service

router = APIRouter(tags=["Authentication"])

# Mounted only when DEFAULT_TENANT is configured.
single_tenant_router = APIRouter(tags=["Authentication"])

ERRORS_400 = {400: {"model": ErrorMessage}, 500: {"model": ErrorMessage}}
ERRORS_401 = {**ERRORS_400, 401: {"model": ErrorMessage}}


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip()


@router.post("/{tenant}/register", response_model=Token, responses=ERRORS_400)
async def register(
    tenant: str,
    request: Request,
    user: Optional[UserCreate] = None,
    service: AuthService = Depends(get_auth_service),
):
    token = await service.register(tenant, user or UserCreate(), request)
    return Token(token=token)


@router.post("/{tenant}/login", response_model=Token, responses=ERRORS_401)
async def login(
    tenant: str,
    request: Request,
    credentials: Optional[UserLogin] = None,
    service: AuthService = Depends(get_auth_service),
):
    credentials = credentials or UserLogin()
    token = await service.login(tenant, credentials.email, credentials.password, request)
    return Token(token=token)


@router.get(
    "/{tenant}/users/{user_id}",
    response_model=UserName,
    tags=["Users"],
    responses={**ERRORS_400, 404: {"model": ErrorMessage}},
)
async def get_user(tenant: str, user_id: str, service: AuthService = Depends(get_auth_service)):
    name = await service.get_user_name(tenant, user_id)
    return UserName(name=name)


@router.post("/jwt", response_model=TokenStatus, responses=ERRORS_401)
async def verify_jwt(
    payload: Optional[TokenVerifyRequest] = None,
    token: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
    x_access_token: Optional[str] = Header(default=None),
    service: AuthService = Depends(get_auth_service),
):
    """
    Check a session token taken from the JSON body, the ``token`` query
    parameter, an ``Authorization: Bearer`` header or ``x-access-token``,
    in that order. Only validity is reported, never the claims.
    """
    candidate = (
        (payload.token if payload else None)
        or token
        or bearer_token(authorization)
        or x_access_token
    )
    service.verify_token(candidate)
    return TokenStatus(valid=True)


@single_tenant_router.post("/register", response_model=Token, responses=ERRORS_400)
async def register_default(
    request: Request,
    user: Optional[UserCreate] = None,
    service: AuthService = Depends(get_auth_service),
):
    tenant = request.app.state.settings.DEFAULT_TENANT
    token = await service.register(tenant, user or UserCreate(), request)
    return Token(token=token)


@single_tenant_router.post("/login", response_model=Token, responses=ERRORS_401)
async def login_default(
    request: Request,
    credentials: Optional[UserLogin] = None,
    service: AuthService = Depends(get_auth_service),
):
    tenant = request.app.state.settings.DEFAULT_TENANT
    credentials = credentials or UserLogin()
    token = await service.login(tenant, credentials.email, credentials.password, request)
    return Token(token=token)


@single_tenant_router.get(
    "/users/{user_id}",
    response_model=UserName,
    tags=["Users"],
    responses={**ERRORS_400, 404: {"model": ErrorMessage}},
)
async def get_user_default(request: Request, user_id: str,
                           service: AuthService = Depends(get_auth_service)):
    name = await service.get_user_name(request.app.state.settings.DEFAULT_TENANT, user_id)
    return UserName(name=name)
