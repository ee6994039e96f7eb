"""Corrective chat replies for gate rejections.

Texts are in Spanish, the language the assistant speaks with its users.
"""

from __future__ import annotations

from .verdicts import (
    LUNCH_BREAK_WARNING,
    Admitted,
    AmountIssue,
    Rejected,
    RejectionReason,
    Verdict,
)


def _fmt_number(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _business_hours(detail: dict) -> str:
    start = detail.get("business_hour_start", 8)
    end = detail.get("business_hour_end", 18)
    return (
        "⏰ Ese horario está fuera de nuestro horario de atención "
        f"({start:02d}:00 - {end:02d}:59). ¿Te sirve otra hora?"
    )


def _amount(detail: dict) -> str:
    issue = detail.get("issue")
    if issue == AmountIssue.TOO_HIGH:
        limit = _fmt_number(detail.get("max_amount", 1000))
        return (
            f"💳 El monto supera el máximo permitido por reserva (${limit}). "
            "Escríbenos para coordinar una reserva especial."
        )
    return "💳 El monto de la reserva no es válido. Revisemos los datos de tu reserva."


def _duration(detail: dict) -> str:
    low = _fmt_number(detail.get("min_duration_hours", 1))
    high = _fmt_number(detail.get("max_duration_hours", 8))
    return (
        f"⏳ Las reservas deben durar entre {low} y {high} horas, "
        "y la hora de fin debe ser posterior a la de inicio."
    )


_STATIC_REPLIES = {
    RejectionReason.INVALID_PHONE_FORMAT: (
        "📱 No pude reconocer tu número. Debe incluir el código de país, por ejemplo +593991234567."
    ),
    RejectionReason.INVALID_EMAIL_FORMAT: (
        "📧 Ese correo no parece válido. ¿Me lo puedes escribir de nuevo? Ej: nombre@dominio.com"
    ),
    RejectionReason.INVALID_TIME_FORMAT: (
        "🕐 No entendí la hora. Por favor usa el formato de 24 horas HH:MM, por ejemplo 09:30."
    ),
}


def reply_for(verdict: Verdict) -> str | None:
    """Return the message to send back to the sender, if any.

    None means stay silent: admitted events are answered by the booking
    logic, and rate-limited senders get no reply until their window clears.
    """
    if isinstance(verdict, Admitted) or verdict.suppress_reply:
        return None

    reason = verdict.reason
    if reason in _STATIC_REPLIES:
        return _STATIC_REPLIES[reason]
    if reason is RejectionReason.OUTSIDE_BUSINESS_HOURS:
        return _business_hours(verdict.detail)
    if reason is RejectionReason.INVALID_AMOUNT:
        return _amount(verdict.detail)
    if reason is RejectionReason.INVALID_DURATION:
        return _duration(verdict.detail)
    # CREDENTIAL_LEAK_ATTEMPT is internal, never shown to users
    return None


def warning_text(warning: str) -> str | None:
    """Return the text for an admission warning, if known."""
    if warning == LUNCH_BREAK_WARNING:
        return (
            "⚠️ Tu reserva coincide con el horario de almuerzo (12:30 - 14:00). "
            "Considera reservar antes de las 12:30 o después de las 14:00."
        )
    return None


def rejection_summary(verdict: Rejected) -> dict:
    """JSON-safe view of a rejection (no PII)."""
    return {
        "reason": verdict.reason.value,
        "detail": {
            k: (v.value if isinstance(v, (RejectionReason, AmountIssue)) else v)
            for k, v in verdict.detail.items()
        },
        "reply": reply_for(verdict),
    }
