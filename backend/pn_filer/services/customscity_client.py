"""
CustomsCity API client: document submission and PNC status queries.

Submission is create-then-send: the document is created under
/api/abi/documents, then dispatched with /api/abi/send. Upstream failures
never raise out of submit_document; they come back as a failed
FilingResult so one bad filing cannot abort its siblings.

Status queries depend on the shape the document was filed in: ABI
documents are read back from /api/abi/documents/{id}, FDA PN documents
from the PN v2 submissions endpoint.
"""

import enum
import logging
from dataclasses import dataclass, replace

import httpx

from pn_filer.config import Settings
from pn_filer.document_builder.formats import FormatVersion
from pn_filer.errors import ConfigurationError, TransientUpstreamError, UpstreamError
from pn_filer.services.http import parse_body, raise_for_upstream_status
from pn_filer.services.retry import RetryPolicy

logger = logging.getLogger("pnfiler.customscity")

SERVICE = "customscity"
DOCUMENT_TYPE = "FDA_PN"


@dataclass(frozen=True)
class FilingResult:
    success: bool
    document_id: str | None = None
    message: str = ""


class StatusOutcome(str, enum.Enum):
    RECEIVED = "received"
    UPSTREAM_ERROR = "upstream_error"
    NOT_YET_AVAILABLE = "not_yet_available"


@dataclass(frozen=True)
class StatusResult:
    outcome: StatusOutcome
    pnc_number: str | None = None
    message: str = ""


class CustomsCityClient:
    """Submit PN documents and read back their confirmation numbers."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.api_key = settings.customscity_api_key
        self.api_base_url = settings.customscity_api_base_url.rstrip("/")
        self.status_base_url = settings.customscity_status_base_url.rstrip("/")
        self.http = http_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self.status_retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.customscity_max_attempts,
            backoff_base=settings.customscity_backoff_base_seconds,
            default_retry_after=settings.customscity_default_retry_after_seconds,
        )
        # Creating a document is not idempotent: only rate-limit waits are retried
        self.submit_retry_policy = replace(self.status_retry_policy, max_attempts=1)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("CustomsCity API key is not configured")

    async def aclose(self) -> None:
        await self.http.aclose()

    @property
    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def status_url(self, document_id: str, format_version: FormatVersion | str) -> str:
        if FormatVersion(format_version) == FormatVersion.ABI_DOCUMENT:
            return f"{self.status_base_url}/api/abi/documents/{document_id}"
        return f"{self.status_base_url}/pn-v2/submissions/{document_id}"

    async def _send(self, method: str, url: str, json: dict | None = None) -> httpx.Response:
        try:
            return await self.http.request(method, url, json=json, headers=self._headers)
        except httpx.TransportError as e:
            raise TransientUpstreamError(f"CustomsCity request failed: {e}", SERVICE) from e

    async def _post_checked(self, url: str, payload: dict) -> dict:
        response = await self._send("POST", url, json=payload)
        raise_for_upstream_status(response, SERVICE)
        return parse_body(response)

    async def submit_document(self, document: dict) -> FilingResult:
        """Create and send one filing document.

        Returns a FilingResult; upstream failures are reported, not raised.
        """
        self.ensure_configured()
        try:
            created = await self.submit_retry_policy.run(
                lambda: self._post_checked(
                    f"{self.api_base_url}/api/abi/documents",
                    {"documentType": DOCUMENT_TYPE, "data": document},
                ),
                description="CustomsCity create document",
            )
            document_id = created.get("documentId") or created.get("id")
            if not document_id:
                return FilingResult(success=False, message="Document created but no ID returned")
            document_id = str(document_id)

            await self.submit_retry_policy.run(
                lambda: self._post_checked(
                    f"{self.api_base_url}/api/abi/send", {"documentId": document_id}
                ),
                description="CustomsCity send document",
            )
        except UpstreamError as e:
            logger.warning("CustomsCity submission failed: %s", e.message)
            return FilingResult(success=False, message=e.message)

        return FilingResult(
            success=True,
            document_id=document_id,
            message="Document submitted successfully to CustomsCity",
        )

    async def _get_status(self, url: str) -> tuple[int, dict]:
        response = await self._send("GET", url)
        if response.status_code == 429 or response.status_code >= 500:
            raise_for_upstream_status(response, SERVICE)
        return response.status_code, parse_body(response)

    async def fetch_status(self, document_id: str, format_version: FormatVersion | str) -> StatusResult:
        """Query the filing service for a document's PNC number."""
        self.ensure_configured()
        try:
            url = self.status_url(document_id, format_version)
        except ValueError:
            return StatusResult(
                StatusOutcome.UPSTREAM_ERROR, message=f"Unknown format version: {format_version!r}"
            )
        try:
            status_code, data = await self.status_retry_policy.run(
                lambda: self._get_status(url),
                description=f"CustomsCity status {document_id}",
            )
        except UpstreamError as e:
            return StatusResult(StatusOutcome.UPSTREAM_ERROR, message=e.message)

        if status_code >= 400:
            return StatusResult(
                StatusOutcome.UPSTREAM_ERROR,
                message=str(data.get("message") or f"API error: {status_code}"),
            )

        pnc_number = data.get("pncNumber")
        if pnc_number:
            return StatusResult(StatusOutcome.RECEIVED, pnc_number=str(pnc_number))
        return StatusResult(StatusOutcome.NOT_YET_AVAILABLE, message="PNC not yet available")
