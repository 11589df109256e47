"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from layoutx.api.middleware import enforce_input_limits, get_settings_from_request, verify_api_key
from layoutx.api.schemas import (
    DecoderRequestSchema,
    ErrorResponse,
    FinalizeRequest,
    HealthResponse,
    IdealLayoutSchema,
    LayoutPlanSchema,
    LayoutRequest,
    LayoutSchema,
    PlanRequest,
    PlanResponse,
)
from layoutx.engine.constraint import LayoutError
from layoutx.engine.plan import DecoderOffer, plan, plan_sequential

if TYPE_CHECKING:
    from layoutx.engine.plan import DecoderRequest, IdealLayout

logger = logging.getLogger(__name__)

SERVICE_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
    status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
}


def _plan_request(request: Request, body: PlanRequest) -> tuple[IdealLayout, DecoderRequest]:
    settings = get_settings_from_request(request)
    enforce_input_limits(settings, body.source.width, body.source.height, len(body.commands))
    try:
        planner = plan_sequential if body.sequential else plan
        return planner(body.to_commands(), body.source.width, body.source.height)
    except LayoutError as exc:
        logger.debug("Rejected plan request: %s", exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.post(
    "/layout",
    response_model=LayoutSchema,
    responses=_ERROR_RESPONSES,
    summary="Resolve a single constraint against a source size",
)
async def compute_layout(request: Request, body: LayoutRequest) -> LayoutSchema:
    """Return the crop, resize and canvas geometry for one constraint."""
    settings = get_settings_from_request(request)
    enforce_input_limits(settings, body.source.width, body.source.height)
    try:
        layout = body.constraint.to_constraint().compute(body.source.width, body.source.height)
    except LayoutError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return LayoutSchema.from_layout(layout)


@router.post(
    "/plan",
    response_model=PlanResponse,
    responses=_ERROR_RESPONSES,
    summary="Plan a command list and describe the work a decoder may take on",
)
async def plan_layout(request: Request, body: PlanRequest) -> PlanResponse:
    """Return the ideal layout and the advisory decoder request."""
    ideal, decoder_request = _plan_request(request, body)
    return PlanResponse(
        ideal=IdealLayoutSchema.from_ideal(ideal),
        decoder_request=DecoderRequestSchema.from_request(decoder_request),
    )


@router.post(
    "/finalize",
    response_model=LayoutPlanSchema,
    responses=_ERROR_RESPONSES,
    summary="Plan a command list and reconcile it with what the decoder did",
)
async def finalize_layout(request: Request, body: FinalizeRequest) -> LayoutPlanSchema:
    """Return the pixel-exact execution plan for the decoder's actual output."""
    ideal, decoder_request = _plan_request(request, body)
    if body.offer is None:
        offer = DecoderOffer.full_decode(body.source.width, body.source.height)
    else:
        offer = body.offer.to_offer()
    return LayoutPlanSchema.from_plan(ideal.finalize(decoder_request, offer))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Return service health status."""
    return HealthResponse(status="ok", version=SERVICE_VERSION)
