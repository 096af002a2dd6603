from fastapi import APIRouter

from pn_filer.api.v1 import filings, health, products, settings, submissions

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(filings.router, prefix="/v1/filings", tags=["filings"])
api_router.include_router(submissions.router, prefix="/v1/submissions", tags=["submissions"])
api_router.include_router(settings.router, prefix="/v1/settings", tags=["settings"])
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])
