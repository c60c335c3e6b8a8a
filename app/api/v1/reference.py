"""Reference data endpoints."""

from fastapi import APIRouter

from app.domain.reference_data import CUISINES, DIETARY_OPTIONS, SOUTH_AFRICAN_CITIES

router = APIRouter()


@router.get("/dietary-options", response_model=list[str])
async def get_dietary_options() -> list[str]:
    return sorted(DIETARY_OPTIONS)


@router.get("/cuisines", response_model=list[str])
async def get_cuisines() -> list[str]:
    return sorted(CUISINES)


@router.get("/cities", response_model=list[str])
async def get_cities() -> list[str]:
    return sorted(SOUTH_AFRICAN_CITIES)
