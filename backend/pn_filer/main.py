import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pn_filer import __version__
from pn_filer.api.router import api_router
from pn_filer.config import Settings, settings
from pn_filer.document_builder import get_format_spec
from pn_filer.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger("pnfiler")


def _init_sentry(config: Settings) -> None:
    try:
        import sentry_sdk
        sentry_sdk.init(
            dsn=config.sentry_dsn,
            traces_sample_rate=0.1,
            environment=config.environment,
            release=f"pn-filer@{__version__}",
        )
        logger.info("Sentry initialized (env=%s)", config.environment)
    except Exception as e:
        logger.warning("Failed to initialize Sentry: %s", e)


def _check_filing_config(config: Settings) -> None:
    """Warn at startup about anything that will make filing requests fail."""
    if not (config.shopify_store_domain and config.shopify_access_token):
        logger.warning("Shopify credentials missing: shipment lookups will be rejected")
    if not config.customscity_api_key:
        logger.warning("CustomsCity API key missing: submissions and PNC checks will be rejected")
    if not get_format_spec(config.filing_format_version).submittable:
        logger.warning(
            "Format version '%s' is export-only: /filings/submit will be rejected",
            config.filing_format_version.value,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.sentry_dsn:
        _init_sentry(settings)
    _check_filing_config(settings)

    logger.info(
        "PN filer %s ready (env=%s, format=%s)",
        __version__, settings.environment, settings.filing_format_version.value,
    )
    yield
    logger.info("PN filer stopped")


app = FastAPI(
    title="PN Filer - FDA Prior Notice Filing",
    description="Builds and submits FDA Prior Notice filings for Shopify orders via CustomsCity",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    RequestLoggingMiddleware,
    format_version=settings.filing_format_version.value,
    environment=settings.environment,
)

app.include_router(api_router, prefix="/api")
