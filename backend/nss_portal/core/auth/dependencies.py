from typing import Annotated, List, Optional, Union
from fastapi import Depends, status
from jwt.exceptions import InvalidTokenError, ExpiredSignatureError
from pydantic import ValidationError

from nss_portal.core.auth.authentication import get_user, oauth2_scheme
from nss_portal.api.users.models import Users
from nss_portal.response import CustomHTTPException
from nss_portal.api.auth.schemas import AuthTokenData
from nss_portal.core.auth.jwt import decode_jwt_token
from nss_portal.db.core import SessionDep


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)], session: SessionDep
):
    if not token:
        return None
    credentials_exception = CustomHTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        message="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_jwt_token(token)
        token_data = AuthTokenData(**payload)
        if token_data.token_type != "access_token":
            raise credentials_exception
    except ExpiredSignatureError:
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Token has expired",
            error_code="TOKEN_EXPIRED",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (InvalidTokenError, ValidationError):
        raise credentials_exception
    user = await get_user(session, token_data.user_id)
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def check_user_role(required_roles: Union[str, List[str]], optional=False):
    """
    Creates a dependency that checks if the current user has the required role(s).

    Args:
        required_roles: Single role string or list of role strings that are allowed
        optional: Let anonymous requests through as ``None``

    Returns:
        Dependency function that validates user roles
    """
    if isinstance(required_roles, str):
        required_roles = [required_roles]

    async def role_checker(
        current_user: Annotated[Optional[Users], Depends(get_current_user)],
    ) -> Users:
        if not current_user:
            if optional:
                return None
            raise CustomHTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                message="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if current_user.role.value not in required_roles:
            raise CustomHTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                message="Not Authorized",
                error_code="INSUFFICIENT_PERMISSIONS",
            )
        return current_user

    return role_checker


DependsAuth = Annotated[Users, Depends(check_user_role(["volunteer", "admin"]))]
VolunteerAuth = Annotated[Users, Depends(check_user_role(["volunteer"]))]
AdminAuth = Annotated[Users, Depends(check_user_role(["admin"]))]

OptionalUserAuth = Annotated[
    Optional[Users],
    Depends(check_user_role(["volunteer", "admin"], optional=True)),
]
