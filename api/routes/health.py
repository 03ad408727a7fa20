"""Health check endpoints."""
from fastapi import APIRouter, Depends

from api.dependencies import get_backend_client
from config import get_settings
from integrations.rental_backend_client import RentalBackendClient

router = APIRouter()


@router.get("/health")
async def health_check(
    check_backend: bool = False,
    client: RentalBackendClient = Depends(get_backend_client),
):
    """Health check endpoint. Pass ``check_backend=true`` to probe the rental backend."""
    settings = get_settings()
    problems = settings.validate_required_settings()

    body = {
        "status": "healthy" if not problems else "degraded",
        "environment": settings.app_env,
        "configuration": problems or "ok",
    }

    if check_backend:
        reachable = await client.test_connection()
        body["backend"] = "reachable" if reachable else "unreachable"
        if not reachable:
            body["status"] = "degraded"

    return body
