"""
Pydantic schemas for the transactions API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UpsertResponse(BaseModel):
    message: Literal["Created", "Updated"]
    id: str


class DeleteResponse(BaseModel):
    message: Literal["Deleted"]


class ErrorResponse(BaseModel):
    error: str
