from __future__ import annotations
import contextvars

_firm: contextvars.ContextVar[str | None] = contextvars.ContextVar("firm_id", default=None)

def set_firm_id(firm_id: str | None) -> None:
    _firm.set(firm_id or None)

def get_firm_id() -> str | None:
    return _firm.get()
