from typing import Annotated
from fastapi import APIRouter, Depends, Form
from fastapi.security import OAuth2PasswordRequestForm
from fastapi import status
import jwt

from nss_portal.core.auth.jwt import create_access_token, decode_jwt_token
from nss_portal.core.auth.authentication import authenticate_user, get_user
from nss_portal.core.auth.dependencies import DependsAuth, VolunteerAuth
from nss_portal.response import CustomHTTPException
from nss_portal.api.auth.schemas import (
    AuthResponse,
    AuthTokenData,
    AuthUser,
    ChangePasswordRequest,
    LoginRequest,
    NSSApplicationRequest,
    NSSApplicationResponse,
    SignupRequest,
    Token,
)
from nss_portal.api.auth import service
from nss_portal.api.users import service as user_service
from nss_portal.api.users.schemas import MessageResponse
from nss_portal.db.core import SessionDep
from nss_portal.config import settings
from datetime import timedelta

router = APIRouter(prefix="/auth")


async def _login(session, email: str, password: str):
    user = await authenticate_user(session, email, password)
    if not user:
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise CustomHTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Account is deactivated. Please contact admin.",
        )
    return user


@router.post("/register", status_code=201, summary="Create a volunteer account")
async def register(signup: SignupRequest, session: SessionDep) -> AuthResponse:
    user = await user_service.create_user(session, signup)
    return AuthResponse(
        message="Account created successfully! You can now login and apply to join NSS.",
        token=service.create_access_refresh_tokens(user),
        user=AuthUser.model_validate(user),
    )


@router.post("/login", summary="Sign in with email and password")
async def login(credentials: LoginRequest, session: SessionDep) -> AuthResponse:
    user = await _login(session, credentials.email, credentials.password)
    return AuthResponse(
        message="Login successful!",
        token=service.create_access_refresh_tokens(user),
        user=AuthUser.model_validate(user),
    )


@router.post("/token", summary="get access token")
async def login_for_access_token(
    session: SessionDep,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    user = await _login(session, form_data.username, form_data.password)
    return service.create_access_refresh_tokens(user)


@router.post("/refresh", summary="refresh access token")
async def refresh_access_token(session: SessionDep, token: str = Form(...)) -> Token:
    try:
        payload = AuthTokenData(**decode_jwt_token(token))
    except jwt.ExpiredSignatureError:
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if payload.token_type != "refresh_token":
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await get_user(session, payload.user_id)
    if not user or not user.is_active:
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_data = AuthTokenData(user_id=user.id, token_type="access_token")
    access_token = create_access_token(
        data=access_token_data.model_dump(),
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token, refresh_token=token, token_type="Bearer")


@router.get("/me", summary="get current user info")
async def read_users_me(current_user: DependsAuth) -> AuthUser:
    return current_user


@router.post("/change-password", summary="Change the current user's password")
async def change_password(
    body: ChangePasswordRequest, user: DependsAuth, session: SessionDep
) -> MessageResponse:
    await user_service.change_password(
        session, user.id, body.current_password, body.new_password
    )
    return {"message": "Password changed successfully!"}


@router.post("/apply-nss", summary="Submit or resubmit an NSS application")
async def apply_nss(
    application: NSSApplicationRequest, user: VolunteerAuth, session: SessionDep
) -> NSSApplicationResponse:
    user, message = await user_service.apply_to_nss(session, user.id, application)
    return NSSApplicationResponse(message=message, user=AuthUser.model_validate(user))
