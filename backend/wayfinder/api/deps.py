from fastapi import HTTPException, Header, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..errors import GraphUnavailable, InvalidInput, NotFound, SearchTimeout, WayfinderError
from ..graph import GraphSnapshot
from ..loader import graph_store
from ..security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_subject(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing credentials")
    try:
        return decode_access_token(credentials.credentials)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def require_service_token(
    service_token: str | None = Header(default=None, alias="X-Service-Token"),
) -> None:
    expected = settings.service_token.get_secret_value()
    if expected and service_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid service token")


def get_snapshot() -> GraphSnapshot:
    try:
        return graph_store.current_snapshot()
    except GraphUnavailable as exc:
        raise http_error(exc)


def http_error(exc: WayfinderError) -> HTTPException:
    if isinstance(exc, InvalidInput):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, GraphUnavailable):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, SearchTimeout):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))
