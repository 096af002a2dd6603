"""CatalogLookup: internal product id → FDA product code."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.domain import CatalogEntry
from pn_filer.models.product import Product


def _as_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class CatalogLookup:
    """Read-only product lookups for the pipeline, plus catalog management."""

    async def lookup(self, db: AsyncSession, product_ids: list[str]) -> dict[str, CatalogEntry]:
        """Return entries for the ids that exist. Unknown or malformed ids are absent."""
        wanted: dict[uuid.UUID, str] = {}
        for raw in product_ids:
            parsed = _as_uuid(raw)
            if parsed is not None:
                wanted.setdefault(parsed, raw)
        if not wanted:
            return {}

        result = await db.execute(select(Product).where(Product.id.in_(list(wanted))))
        return {
            wanted[product.id]: CatalogEntry(
                internal_id=wanted[product.id],
                regulatory_product_code=product.product_code,
            )
            for product in result.scalars().all()
        }

    async def list_products(self, db: AsyncSession) -> list[Product]:
        result = await db.execute(select(Product).order_by(Product.nickname.asc()))
        return list(result.scalars().all())

    async def create_product(self, db: AsyncSession, nickname: str, product_code: str) -> Product:
        product = Product(id=uuid.uuid4(), nickname=nickname.strip(), product_code=product_code.strip())
        db.add(product)
        await db.flush()
        await db.refresh(product)
        return product
