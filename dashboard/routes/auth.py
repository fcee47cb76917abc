import logging
import math

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from dashboard.core.config import settings
from dashboard.core.errors import ConfigurationError
from dashboard.core.security import brute_force_protection, verify_api_key
from dashboard.schemas.auth import ApiKeyValidateRequest, ApiKeyValidateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/validate", response_model=ApiKeyValidateResponse)
def validate_api_key(body: ApiKeyValidateRequest, request: Request):
    ip = client_ip(request)
    retry_after = brute_force_protection.retry_after(ip)
    if retry_after is not None:
        minutes = math.ceil(retry_after / 60)
        logger.warning("Blocked key validation from %s", ip, extra={"client_ip": ip})
        return JSONResponse(
            status_code=429,
            content={
                "valid": False,
                "message": f"Too many failed attempts. Try again in {minutes} minutes.",
                "retry_after": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    if not body.api_key or not body.api_key.strip():
        raise HTTPException(status_code=400, detail="API key is required")
    if not settings.API_SECURITY_KEY:
        raise ConfigurationError("API_SECURITY_KEY is not configured")

    if not verify_api_key(body.api_key):
        brute_force_protection.record_failure(ip)
        logger.warning(
            "Invalid API key from %s (%d failed attempts)", ip, brute_force_protection.attempt_count(ip),
            extra={"client_ip": ip},
        )
        return JSONResponse(status_code=401, content={"valid": False, "message": "Invalid API key"})

    brute_force_protection.clear(ip)
    return ApiKeyValidateResponse(valid=True, message="API key is valid")
