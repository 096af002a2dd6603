from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.dependencies import get_db
from pn_filer.schemas.settings import (
    SettingsResponse,
    SettingsSeedResponse,
    SettingsUpdateRequest,
)
from pn_filer.stores.settings_store import SettingsProvider

router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def get_settings(db: AsyncSession = Depends(get_db)) -> SettingsResponse:
    return SettingsResponse(settings=await SettingsProvider().load(db))


@router.post("", response_model=SettingsResponse)
async def update_settings(
    request: SettingsUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    """Upsert filing settings. Keys not in the request are left untouched."""
    return SettingsResponse(settings=await SettingsProvider().update(db, request.settings))


@router.post("/seed", response_model=SettingsSeedResponse)
async def seed_settings(db: AsyncSession = Depends(get_db)) -> SettingsSeedResponse:
    """Insert default filing settings that are not already set."""
    inserted = await SettingsProvider().seed_defaults(db)
    return SettingsSeedResponse(message="Default settings seeded", inserted=inserted)
