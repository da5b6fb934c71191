"""Buzzer, LCD and duress endpoints."""

from __future__ import annotations

from dropnshop._api._common import call_endpoint
from dropnshop._transport import Transport
from dropnshop.models.responses import GeneralResponse


async def buzz(transport: Transport, duration_ms: int) -> bool:
    response = await call_endpoint(transport, "toggleBuzzer", GeneralResponse, {"durationMillis": int(duration_ms)})
    return response.resp.success


async def clear_screen(transport: Transport) -> bool:
    response = await call_endpoint(transport, "lcdClearScreen", GeneralResponse)
    return response.resp.success


async def write_screen(transport: Transport, row: int, column: int, text: str) -> bool:
    payload = {"row": row, "col": column, "text": text}
    response = await call_endpoint(transport, "lcdWriteData", GeneralResponse, payload)
    return response.resp.success


async def trigger_duress(transport: Transport) -> bool:
    """Raise the silent duress alarm."""
    response = await call_endpoint(transport, "triggerUserDuress", GeneralResponse)
    return response.resp.success
