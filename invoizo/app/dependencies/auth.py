"""Authentication dependency resolving the caller identity from the bearer token."""

from fastapi import Header, HTTPException

from invoizo.app.core.security import decode_access_token


def get_current_owner_id(authorization: str | None = Header(default=None)) -> str:
    # Expect Authorization: Bearer <token>; the token subject is the owner identity.
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Authentication required")

    owner_id = payload.get("sub")
    if not owner_id or not str(owner_id).strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return str(owner_id)
