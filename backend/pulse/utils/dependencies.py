import logging
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pulse.utils.errors import Unauthorized
from pulse.utils.security import decode_access_token


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(token: str) -> dict:
    payload = decode_access_token(token)
    return {"_id": payload["sub"], "email": payload.get("email")}


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Missing or invalid Authorization header")
    try:
        return _user_from_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise Unauthorized("Invalid or expired token") from exc


async def get_optional_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[dict]:
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials)
    except jwt.PyJWTError:
        return None
