"""Liveness route."""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "OK", "message": "Clarity Finance Backend is running"}
