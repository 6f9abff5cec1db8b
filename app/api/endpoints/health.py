from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple readiness check")
async def health_check() -> dict[str, bool]:
    return {"ok": True}
