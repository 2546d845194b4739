"""Schemas shared by status transition endpoints."""
from __future__ import annotations

from pydantic import BaseModel


class UndoRequest(BaseModel):
    confirm: bool = False


class TransitionResponse(BaseModel):
    id: str
    action: str
    previous_status: str
    status: str
    phase: str
