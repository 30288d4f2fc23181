import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from storage.document_store import DocumentStore

from .validation import validate_submission

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Thank you! Your submission has been received."


class SubmissionError(Exception):
    """A submission that cannot be accepted; `payload` is the JSON error body."""
    def __init__(self, status: int, payload: Dict[str, Any]):
        self.status = status
        self.payload = payload
        super().__init__(payload.get("error", "Submission failed"))


@dataclass
class SubmissionResult:
    submission_id: str
    message: str
    redirect_url: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        response = {"success": True, "message": self.message}
        if self.redirect_url:
            response["redirectUrl"] = self.redirect_url
        return response


def client_metadata(headers: Mapping[str, str]) -> Dict[str, str]:
    ip = headers.get("x-forwarded-for") or headers.get("x-real-ip") or ""
    return {
        "ip": ip.split(",")[0].strip(),
        "userAgent": headers.get("user-agent") or "",
    }


class FormSubmissionService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def find_active_form(self, form_slug: str) -> Optional[Dict[str, Any]]:
        result = await self.store.find(
            "forms",
            where={"and": [{"slug": {"equals": form_slug}}, {"status": {"equals": "active"}}]},
            limit=1,
            depth=0,
            override_access=True,
        )
        return result.docs[0] if result.docs else None

    async def submit(self, form_slug: Optional[str], data: Optional[Dict[str, Any]], headers: Mapping[str, str]) -> SubmissionResult:
        if not form_slug or data is None:
            raise SubmissionError(400, {"error": "formSlug and data are required"})

        form = await self.find_active_form(form_slug)
        if form is None:
            raise SubmissionError(404, {"error": "Form not found or inactive"})

        errors = validate_submission(form.get("fields") or [], data)
        if errors:
            raise SubmissionError(400, {"error": "Validation failed", "errors": errors})

        try:
            submission = await self.store.create(
                "form-submissions",
                {
                    "form": form["id"],
                    "tenant": form.get("tenant"),
                    "payload": data,
                    "metadata": client_metadata(headers),
                },
            )
        except Exception as e:
            logger.error(f"Failed to create submission for form {form_slug}: {e}", exc_info=True)
            raise SubmissionError(500, {"error": "Failed to save submission", "details": str(e)})

        logger.info(f"Submission created: {submission['id']} for tenant: {submission.get('tenant')}")
        return SubmissionResult(
            submission_id=submission["id"],
            message=form.get("successMessage") or DEFAULT_SUCCESS_MESSAGE,
            redirect_url=form.get("redirectUrl") or None,
        )
