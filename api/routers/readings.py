"""
Reading API Endpoints.

Endpoints for submitting nozzle meter readings (the stock ledger workflow)
and browsing a nozzle's reading history.
"""

from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_store
from api.models import ErrorResponse, ReadingHistoryItem, ReadingRequest, ReadingResultResponse
from repositories.document_store import DocumentStore
from services.reading_service import ReadingSubmission, list_reading_history, record_reading

router = APIRouter()


@router.post(
    "/readings",
    response_model=ReadingResultResponse,
    status_code=201,
    summary="Record Nozzle Reading",
    description="Record a meter reading, charge the sale and decrement the tank in one atomic commit.",
    responses={
        400: {"model": ErrorResponse, "description": "Reading order or price invalid"},
        404: {"model": ErrorResponse, "description": "Nozzle, product or tank not found"},
        409: {"model": ErrorResponse, "description": "Stale reading or insufficient stock"},
    },
)
def submit_reading(request: ReadingRequest, store: DocumentStore = Depends(get_store)):
    """
    Record a nozzle reading.

    **Workflow:**
    1. Validate nozzle, product and tank; current >= previous; stock covers the volume
    2. Compute sales volume and amount at the effective price
    3. Commit nozzle meter, reading, optional price change and tank decrement together

    Nothing is written when the request is rejected.
    """
    result = record_reading(
        store,
        ReadingSubmission(
            nozzle_id=request.nozzle_id,
            current_reading=request.current_reading,
            previous_reading=request.previous_reading,
            new_price=request.new_price,
            tank_id=request.tank_id,
        ),
    )
    return ReadingResultResponse.model_validate(result)


@router.get(
    "/nozzles/{nozzle_id}/readings",
    response_model=List[ReadingHistoryItem],
    summary="Nozzle Reading History",
    description="Readings recorded on a nozzle, newest first.",
)
def get_reading_history(nozzle_id: str, store: DocumentStore = Depends(get_store)):
    return [ReadingHistoryItem.model_validate(entry) for entry in list_reading_history(store, nozzle_id)]
