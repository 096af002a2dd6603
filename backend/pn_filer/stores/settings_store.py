"""SettingsProvider: operator defaults as a flat key → string map."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.models.setting import Setting

# Seed values for a fresh install. Blank values fall back to the format's
# hard-coded defaults at build time.
DEFAULT_SETTINGS: dict[str, str] = {
    "csv_entryType": "11",
    "csv_referenceQualifier": "EXB",
    "csv_referenceNumber": "",
    "csv_modeOfTransport": "50",
    "csv_noTrackingNumber": "N",
    "csv_billType": "T",
    "csv_timeOfArrival": "11:30",
    "csv_usPortOfArrival": "4701",
    "csv_equipmentNumber": "",
    "csv_shipperName": "",
    "csv_shipperAddress": "",
    "csv_shipperCity": "",
    "csv_shipperCountry": "",
    "csv_description": "",
    "csv_pgaProductBaseUOM": "",
    "csv_pgaProductPackagingUOM1": "",
    "csv_pgaProductQuantity1": "",
    "csv_pgaProductBaseUOM2": "",
    "csv_pgaProductBaseQuantity2": "",
    "csv_pgaProductPackagingUOM3": "",
    "csv_pgaProductQuantity3": "",
    "csv_pgaProductPackagingUOM4": "",
    "csv_pgaProductQuantity4": "",
    "csv_pgaProductPackagingUOM5": "",
    "csv_pgaProductQuantity5": "",
    "csv_carrierName": "POST",
    "csv_vesselName": "",
    "csv_railCarNumber": "",
}


class SettingsProvider:
    async def load(self, db: AsyncSession) -> dict[str, str]:
        """Read the whole settings table. Absent keys are not errors."""
        result = await db.execute(select(Setting))
        return {s.key: s.value or "" for s in result.scalars().all()}

    async def update(self, db: AsyncSession, updates: dict[str, str]) -> dict[str, str]:
        """Upsert the given keys and return the full map."""
        existing = {s.key: s for s in (await db.execute(select(Setting))).scalars().all()}
        for key, value in updates.items():
            row = existing.get(key)
            if row is None:
                db.add(Setting(key=key, value=value or ""))
            else:
                row.value = value or ""
        await db.flush()
        return await self.load(db)

    async def seed_defaults(self, db: AsyncSession) -> int:
        """Insert missing default keys without touching existing values."""
        current = await self.load(db)
        missing = {k: v for k, v in DEFAULT_SETTINGS.items() if k not in current}
        for key, value in missing.items():
            db.add(Setting(key=key, value=value))
        await db.flush()
        return len(missing)
