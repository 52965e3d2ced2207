"""GET /v1/roi - client ROI report endpoint"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from roi_gateway.api.v1.schemas import ErrorResponse, ROIResponse
from roi_gateway.api.dependencies import get_request_id, get_roi_service
from roi_gateway.services.roi_service import ROIService
from roi_gateway.domain.exceptions import AuthenticationFailure, UpstreamError
from roi_gateway.domain.models import MatchOutcome
from roi_gateway.infrastructure.observability.metrics import record_roi_outcome
from roi_gateway.infrastructure.observability.logging import hash_email, log_roi_outcome

router = APIRouter()


@router.get(
    "/roi",
    response_model=ROIResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_roi(
    request: Request,
    email: str = Query(..., min_length=3, description="Client contact email"),
    roi_service: ROIService = Depends(get_roi_service),
):
    """
    Compute the ROI report for the client owning `email`.

    Outcomes:
    - 200: report
    - 400: invalid email, or several candidate clients (listed in the body)
    - 404: no matching client
    - 401: invoicing platform rejected our credentials
    - 503: invoicing platform unavailable
    """
    start_time = time.time()
    request_id = get_request_id(request)
    email = email.strip()

    if "@" not in email:
        raise HTTPException(status_code=400, detail="Valid email address is required")

    try:
        result = await roi_service.get_client_roi(email)

    except AuthenticationFailure as e:
        record_roi_outcome("auth_failure")
        logging.error(f"Invoicing authentication failed: {e}", extra={"request_id": request_id})
        raise HTTPException(
            status_code=401,
            detail="Invoicing platform authentication failed. Please contact administrator.",
        )

    except UpstreamError as e:
        record_roi_outcome("upstream_error")
        logging.error(
            f"Invoicing API error: {e}",
            extra={"request_id": request_id, "email_hash": hash_email(email)},
        )
        raise HTTPException(status_code=503, detail="Invoicing service unavailable")

    outcome = "success" if result.success else result.match.outcome.value
    record_roi_outcome(outcome)
    log_roi_outcome(request_id, email, outcome, (time.time() - start_time) * 1000)

    if result.success:
        return ROIResponse.from_report(result.report)

    status_code = 400 if result.match.outcome is MatchOutcome.AMBIGUOUS else 404
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.from_match(result.match).model_dump(exclude_none=True),
    )
