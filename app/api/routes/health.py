"""
Rota de health check.

- /health: Liveness básico (sempre 200 se app rodando)
"""
from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "ok"}
