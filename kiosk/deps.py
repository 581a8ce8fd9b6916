import logging
from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

# Gateway sets X-User; require it for protected endpoints
def require_user(request: Request) -> str:
    user = request.headers.get("X-User")
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing X-User")
    logger.debug("%s %s by %s", request.method, request.url.path, user)
    return user
