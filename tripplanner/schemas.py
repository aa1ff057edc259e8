"""Pydantic request/response schemas for the trip planner API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

SortBy = Literal["fastest", "cheapest"]


class Trip(BaseModel):
    id: str
    origin: str
    destination: str
    cost: int = Field(ge=0)
    duration: int = Field(ge=0)
    type: str
    display_name: str


class SavedTrip(Trip):
    created_at: datetime


class SaveTripRequest(BaseModel):
    tripId: str = Field(min_length=1)
    origin: str
    destination: str

    @field_validator("tripId")
    @classmethod
    def strip_trip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("tripId must not be blank")
        return v


class ErrorResponse(BaseModel):
    message: str
    code: str


TripList = TypeAdapter(List[Trip])
SavedTripList = TypeAdapter(List[SavedTrip])
