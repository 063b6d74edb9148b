from fastapi import APIRouter, FastAPI

from .pairing import router as pairing_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(pairing_router, tags=["pairing"])


__all__ = ["include_modular_routers", "APIRouter"]
