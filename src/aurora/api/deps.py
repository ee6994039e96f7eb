"""Request dependencies and response helpers shared by routers."""

import math

from fastapi import Request
from fastapi.responses import JSONResponse

from aurora.domain.gate import SessionGate
from aurora.domain.replies import rejection_summary, warning_text
from aurora.domain.verdicts import Admitted, Verdict


def get_gate(request: Request) -> SessionGate:
    """Session gate owned by the running app (one per create_app call)."""
    return request.app.state.gate


def verdict_response(verdict: Verdict, **extra) -> JSONResponse:
    """Render a gate verdict as JSON.

    Rate-limited senders get 429 with a Retry-After header (whole seconds,
    rounded up, at least 1). Other rejections are answered with 200 since
    the provider delivered the message fine.
    """
    if isinstance(verdict, Admitted):
        return JSONResponse(
            content={
                **extra,
                "admitted": True,
                "warnings": [warning_text(w) or w for w in verdict.warnings],
            }
        )

    content = {**extra, "admitted": False, **rejection_summary(verdict)}
    if verdict.suppress_reply:
        retry_after = verdict.retry_after_seconds or 0
        return JSONResponse(
            status_code=429,
            content=content,
            headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
        )
    return JSONResponse(content=content)
