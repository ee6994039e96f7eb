"""Wassenger webhook route - admission only.

The route normalizes the envelope, runs the session gate and answers the
provider. Conversation handling happens downstream of an Admitted verdict
and is not wired here.

Security:
- sender phone, name and text exist only in memory during the request
- logs carry the masked sender only
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aurora.domain.gate import SessionGate
from aurora.domain.verdicts import Admitted
from aurora.infra.time import utc_now
from aurora.observability.correlation import get_correlation_id
from aurora.observability.logging import get_logger
from aurora.observability.redaction import safe_log_context
from aurora.whatsapp.wassenger_adapter import InvalidPayloadError, is_incoming, normalize

from ..deps import get_gate, verdict_response

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = get_logger(__name__)


@router.post("/wassenger")
async def wassenger_webhook(
    request: Request,
    gate: SessionGate = Depends(get_gate),
) -> JSONResponse:
    """Receive a Wassenger webhook and run admission.

    Returns:
        200 {"ok": true, "ignored": true} for non-incoming events.
        200 {"ok": true, "admitted": true} if admitted.
        200 {"ok": true, "admitted": false, ...} for user-facing rejections.
        400 if body is not JSON or has an invalid shape.
        429 with Retry-After if the sender is rate limited.
    """
    correlation_id = get_correlation_id()

    # 1. Parse JSON
    try:
        payload: Any = await request.json()
    except ValueError:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return JSONResponse(status_code=400, content={"ok": False, "error": "INVALID_JSON"})

    if not isinstance(payload, dict) or not payload.get("event"):
        return JSONResponse(status_code=400, content={"ok": False, "error": "INVALID_PAYLOAD"})

    # 2. Ignore outgoing messages and unrelated events
    if not is_incoming(payload):
        return JSONResponse(content={"ok": True, "ignored": True, "reason": "not_incoming"})

    # 3. Normalize payload (sender and text in memory only)
    try:
        event = normalize(payload, received_at=utc_now())
    except InvalidPayloadError as e:
        logger.warning(
            "invalid wassenger payload shape",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, error=str(e))},
        )
        return JSONResponse(status_code=400, content={"ok": False, "error": "INVALID_PAYLOAD"})

    # 4. Admission
    verdict = gate.check(event)

    if isinstance(verdict, Admitted):
        logger.info(
            "inbound message admitted",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    sender=event.sender_id,
                    channel=event.channel,
                )
            },
        )

    return verdict_response(verdict, ok=True)
