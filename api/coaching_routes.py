"""Coaching relationship routes for users and coaches."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_coaching_service, require_auth
from schemas.coaching import (
    ClientNotesRequest,
    ClientTarget,
    CoachTarget,
    RateCoachRequest,
    RequestAnswer,
    SelectCoachRequest,
)
from services.coaching_service import CoachingService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/coaching", tags=["coaching"])


# ----------------------------------------------------------------------
# User side
# ----------------------------------------------------------------------

@router.get("/status")
async def get_coaching_status(
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_status(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch coaching status", e)


@router.post("/request", status_code=201)
async def send_coach_request(
    request: CoachTarget,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        request_id = await coaching_service.send_request(user["uid"], request.nutritionistId)
        return {"message": "Coaching request sent successfully.", "requestId": request_id}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "send coaching request", e)


@router.get("/request-status/{nutritionistId}")
async def get_request_status(
    nutritionistId: str,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return {"status": await coaching_service.get_request_status(user["uid"], nutritionistId)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch request status", e)


@router.post("/select")
async def select_coach(
    request: SelectCoachRequest,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.select_coach(user["uid"], request.requestId, request.nutritionistId)
        return {"message": "Coach selected successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "select coach", e)


@router.post("/end-relationship")
async def end_relationship(
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        coach_id = await coaching_service.end_relationship(user["uid"])
        if coach_id is None:
            return {"message": "No active coach relationship to end."}
        return {"message": "Coaching relationship ended."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "end coaching relationship", e)


@router.post("/block")
async def block_coach(
    request: CoachTarget,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        ended = await coaching_service.block_coach(user["uid"], request.nutritionistId)
        return {"message": "Coach blocked successfully.", "relationshipEnded": ended}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "block coach", e)


@router.post("/unblock")
async def unblock_coach(
    request: CoachTarget,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.unblock_coach(user["uid"], request.nutritionistId)
        return {"message": "Coach unblocked successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "unblock coach", e)


@router.post("/rate")
async def rate_coach(
    request: RateCoachRequest,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        result = await coaching_service.rate_coach(user["uid"], request.nutritionistId, request.rating)
        return {"message": "Rating submitted successfully.", **result}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "rate coach", e)


# ----------------------------------------------------------------------
# Coach side
# ----------------------------------------------------------------------

@router.get("/coach/requests")
async def get_pending_requests(
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_pending_requests(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch pending requests", e)


@router.post("/coach/requests/accept")
async def accept_request(
    request: RequestAnswer,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.accept_request(user["uid"], request.userId, request.requestId)
        return {"message": "Request accepted."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "accept request", e)


@router.post("/coach/requests/decline")
async def decline_request(
    request: RequestAnswer,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.decline_request(user["uid"], request.userId, request.requestId)
        return {"message": "Request declined."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "decline request", e)


@router.post("/coach/end-relationship")
async def coach_end_relationship(
    request: ClientTarget,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.coach_end_relationship(user["uid"], request.clientId)
        return {"message": "Coaching relationship ended."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "end client relationship", e)


@router.get("/coach/clients")
async def get_clients(
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_clients(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch clients", e)


@router.get("/coach/client/{clientId}/details")
async def get_client_details(
    clientId: str,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_client_details(user["uid"], clientId)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch client details", e)


@router.get("/coach/client/{clientId}/notes")
async def get_client_notes(
    clientId: str,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_client_notes(user["uid"], clientId)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch client notes", e)


@router.post("/coach/client/{clientId}/notes")
async def save_client_notes(
    clientId: str,
    request: ClientNotesRequest,
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        await coaching_service.save_client_notes(user["uid"], clientId, request.notes)
        return {"message": "Notes saved successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save client notes", e)


@router.get("/coach/dashboard-summary")
async def get_dashboard_summary(
    user: Dict[str, Any] = Depends(require_auth),
    coaching_service: CoachingService = Depends(get_coaching_service)
):
    try:
        return await coaching_service.get_dashboard_summary(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch coach dashboard summary", e)
