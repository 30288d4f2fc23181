"""
Public form submission endpoint. No authentication: submissions are open to
anyone, the form itself must exist and be active.
"""
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .service import FormSubmissionService, SubmissionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forms", tags=["Forms"])


class FormSubmitRequest(BaseModel):
    formSlug: Optional[str] = Field(None, max_length=200)
    data: Optional[Dict[str, Any]] = None


def get_form_service(request: Request) -> FormSubmissionService:
    return request.app.state.form_service


FormService = Annotated[FormSubmissionService, Depends(get_form_service)]


@router.post("/submit")
async def submit_form(body: FormSubmitRequest, request: Request, service: FormService):
    """Validate and store a submission for an active form."""
    try:
        result = await service.submit(body.formSlug, body.data, request.headers)
    except SubmissionError as e:
        return JSONResponse(e.payload, status_code=e.status)
    except Exception as e:
        logger.error(f"Form submission error: {e}", exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    return result.to_response()
