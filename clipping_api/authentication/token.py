from fastapi import Depends
from fastapi.logger import logger
from fastapi.security import OAuth2PasswordBearer
from httpx import Response
from pydantic import ValidationError

from ..errors import UnauthorizedError, to_http_exception
from ..models.pydantic.authentication import User
from ..utils.rw_api import who_am_i

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


async def get_user(token: str = Depends(oauth2_scheme)) -> User:
    """Get the details for the authenticated user."""

    response: Response = await who_am_i(token)

    try:
        return user_from_response(response)
    except UnauthorizedError as e:
        raise to_http_exception(e)


def user_from_response(response: Response) -> User:
    if response.status_code == 401:
        logger.info("Unauthorized user")
        raise UnauthorizedError(
            "Unauthorized access - this operation requires user authentication via a token"
        )

    try:
        return User(**response.json())
    except ValidationError as e:
        logger.warning(f"Identity service returned an unexpected user: {e}")
        raise UnauthorizedError("Unauthorized")
