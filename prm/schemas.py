"""Request bodies accepted by the REST API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def sent(self, *exclude: str) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True, exclude=set(exclude))


class PersonPayload(_Payload):
    name: Optional[str] = None
    contact_info: Optional[dict[str, Any]] = None
    current_location_lat: Optional[float] = None
    current_location_lng: Optional[float] = None
    location_name: Optional[str] = None
    notes: Optional[str] = None
    organization_ids: Optional[list[str]] = Field(default=None, description="Replaces all links when present")
    roles: Optional[dict[str, str]] = Field(default=None, description="organization_id -> role")


class OrganizationPayload(_Payload):
    name: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None


class EventPayload(_Payload):
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    date: Optional[str] = None
    end_date: Optional[str] = None
    location_name: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    description: Optional[str] = None


class InteractionPayload(_Payload):
    id: Optional[str] = None
    person_id: Optional[str] = None
    event_id: Optional[str] = None
    date: Optional[str] = None
    type: Optional[str] = None
    sentiment: Optional[str] = None
    notes: Optional[str] = None
    location_name: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None


class IdPayload(_Payload):
    id: str


class PreferencePayload(_Payload):
    key: str
    value: list[str]
