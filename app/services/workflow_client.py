"""Clients for the external extraction workflow.

The workflow is a black box behind ``invoke(payload) -> WorkflowOutcome``.
``WebhookExtractionWorkflow`` calls the configured n8n webhook;
``TestModeExtractionWorkflow`` never leaves the process and always succeeds.
"""

from typing import Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import APITimeoutError, WorkflowError
from app.schemas.upload import WorkflowOutcome, WorkflowPayload
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

TEST_MODE_NOTICE = "This is mock data. Configure n8n webhook for real processing."


class ExtractionWorkflow(Protocol):
    async def invoke(self, payload: WorkflowPayload) -> WorkflowOutcome:
        ...


class WebhookExtractionWorkflow:
    """Posts the payload to the n8n webhook and waits for the extraction result."""

    def __init__(
        self,
        webhook_url: str,
        secret: Optional[str] = None,
        timeout: float = 120.0,
    ):
        self.webhook_url = webhook_url
        self.secret = secret
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"
        return headers

    async def invoke(self, payload: WorkflowPayload) -> WorkflowOutcome:
        """Run the workflow for one document.

        Returns:
            The workflow's outcome, which may itself report ``success=False``

        Raises:
            APITimeoutError: If the webhook does not answer within the timeout
            WorkflowError: If the webhook is unreachable or answers with an error status
        """
        body = payload.model_dump(mode="json", exclude_none=True)
        LOGGER.info(
            "Invoking extraction workflow",
            extra={"document_id": str(payload.document_id), "timeout": self.timeout},
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=body,
                    headers=self._headers(),
                )
        except httpx.TimeoutException as e:
            raise APITimeoutError(
                f"Extraction workflow timed out after {self.timeout:g}s", original_error=e
            ) from e
        except httpx.HTTPError as e:
            raise WorkflowError(f"Extraction workflow unreachable: {e}", original_error=e) from e

        if response.status_code >= 400:
            raise WorkflowError(
                f"Extraction workflow failed with status {response.status_code}"
            )

        try:
            outcome = WorkflowOutcome.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise WorkflowError("Extraction workflow returned an invalid response", original_error=e) from e

        LOGGER.info(
            "Extraction workflow finished",
            extra={"document_id": str(payload.document_id), "workflow_success": outcome.success},
        )
        return outcome


class TestModeExtractionWorkflow:
    """Synthesizes a successful outcome without any external call."""

    __test__ = False

    async def invoke(self, payload: WorkflowPayload) -> WorkflowOutcome:
        return WorkflowOutcome(
            success=True,
            document_id=payload.document_id,
            extracted_json={
                "test": True,
                "message": TEST_MODE_NOTICE,
                "filename": payload.filename,
            },
            generated_message=(
                f"Successfully uploaded {payload.filename}. This is a test upload without "
                "n8n processing. Configure N8N_WEBHOOK_URL for real document processing."
            ),
            raw_text=(
                f"Mock raw text for {payload.filename}. In production, n8n will extract "
                "the actual text content from your document."
            ),
            confidence=1.0,
            warnings=None,
            template_id=payload.template_id,
        )
