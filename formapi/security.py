import datetime
import logging
from typing import Annotated, Literal, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt

from formapi.config import config
from formapi.models.user import Owner

logger = logging.getLogger(__name__)

# tokens are issued by the identity provider; this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=True)


def create_unauthorized_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def access_token_expire_minutes() -> int:
    return config.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(owner_id: str, email: Optional[str] = None) -> str:
    logger.debug("Creating access token", extra={"email": email or ""})
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        minutes=access_token_expire_minutes()
    )
    jwt_data = {"sub": owner_id, "email": email, "exp": expire, "type": "access"}
    return jwt.encode(jwt_data, key=config.SECRET_KEY, algorithm=config.ALGORITHM)


def get_owner_for_token_type(token: str, type: Literal["access"]) -> Owner:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError as e:
        raise create_unauthorized_exception("Token has expired") from e
    except JWTError as e:
        raise create_unauthorized_exception("Invalid token") from e

    owner_id = payload.get("sub")
    if owner_id is None:
        raise create_unauthorized_exception("Token is missing 'sub' field")

    token_type = payload.get("type")
    if token_type is None or token_type != type:
        raise create_unauthorized_exception(
            f"Token has incorrect type, expected '{type}'"
        )

    return Owner(id=owner_id, email=payload.get("email"))


async def get_current_owner(token: Annotated[str, Depends(oauth2_scheme)]) -> Owner:
    return get_owner_for_token_type(token, "access")
