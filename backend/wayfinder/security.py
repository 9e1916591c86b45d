from datetime import datetime, timedelta
from jose import JWTError, jwt
from .config import settings

ALGO = "HS256"

# Tokens are minted by the auth service that shares secret_key; this API
# only needs create_access_token for local tooling and tests.
def create_access_token(sub: str, expires_minutes: int = 60) -> str:
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    to_encode = {"sub": sub, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=ALGO)

def decode_access_token(token: str) -> str:
    try:
        payload = jwt.decode(token, settings.secret_key.get_secret_value(), algorithms=[ALGO])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    sub = payload.get("sub")
    if not sub:
        raise ValueError("Token missing subject")
    return str(sub)
