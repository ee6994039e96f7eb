"""Reservation draft validation route.

Called by the conversation engine before it confirms a booking. Runs the
full session gate (rate limit included) for the draft's sender.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from aurora.domain.gate import SessionGate
from aurora.domain.models import InboundMessageEvent, ReservationDraft
from aurora.infra.time import utc_now

from ..deps import get_gate, verdict_response

router = APIRouter(prefix="/reservations", tags=["reservations"])


class DraftBody(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    user_id: str = Field(alias="userId")
    user_name: str | None = Field(default=None, alias="userName")
    date: str | None = None
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    duration_hours: float | None = Field(default=None, alias="durationHours")
    service_type: str | None = Field(default=None, alias="serviceType")
    # Kept loose: non-numeric prices must reach the gate as INVALID_AMOUNT
    total_price: float | int | str | None = Field(alias="totalPrice")
    was_free: bool = Field(default=False, alias="wasFree")


class ValidateDraftRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sender_id: str
    text: str = ""
    draft: DraftBody


@router.post("/validate")
def validate_draft(
    body: ValidateDraftRequest,
    gate: SessionGate = Depends(get_gate),
) -> JSONResponse:
    """Run the session gate over a draft.

    Returns:
        200 with {"admitted": true, "warnings": [...]} or
        {"admitted": false, "reason", "detail", "reply"}.
        429 with Retry-After when the sender is rate limited.
    """
    event = InboundMessageEvent(
        sender_id=body.sender_id,
        raw_text=body.text,
        received_at=utc_now(),
        channel="whatsapp",
    )
    d = body.draft
    draft = ReservationDraft(
        user_id=d.user_id,
        user_name=d.user_name,
        date=d.date,
        start_time=d.start_time,
        end_time=d.end_time,
        duration_hours=d.duration_hours,
        service_type=d.service_type,
        total_price=d.total_price,  # type: ignore[arg-type]
        was_free=d.was_free,
    )

    return verdict_response(gate.check(event, draft))
