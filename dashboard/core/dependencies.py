from fastapi import Depends, Header, HTTPException, status

from dashboard.core.security import verify_api_key


def _api_key_dep(x_api_key: str | None = Header(None, alias="X-API-Key")) -> None:
    if not verify_api_key(x_api_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")


RequireApiKey = Depends(_api_key_dep)
