"""Shared utilities for API route handlers."""

from __future__ import annotations

from datetime import date

from fastapi import HTTPException


def parse_day(value: str | None, name: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"Invalid {name} date, use YYYY-MM-DD"
        ) from None
