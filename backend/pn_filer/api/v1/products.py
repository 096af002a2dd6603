from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.dependencies import get_db
from pn_filer.schemas.product import ProductCreate, ProductResponse
from pn_filer.stores.catalog import CatalogLookup

router = APIRouter()


@router.get("", response_model=list[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)) -> list[ProductResponse]:
    products = await CatalogLookup().list_products(db)
    return [ProductResponse.model_validate(p) for p in products]


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    request: ProductCreate,
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    product = await CatalogLookup().create_product(db, request.nickname, request.product_code)
    return ProductResponse.model_validate(product)
