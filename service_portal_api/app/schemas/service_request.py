"""
Pydantic schemas for service requests.

A service request is submitted from the public request form and later
listed in the administration panel.  Attribute names are snake_case in
Python; on the wire and in stored documents they use the camelCase
aliases (``clientName``, ``submittedAt`` ...).
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ServiceType(str, Enum):
    """Services a customer can ask for."""

    CONSULTATION = "consultation"
    MAINTENANCE = "maintenance"
    EMERGENCY = "emergency"
    OTHER = "other"


class RequestStatus(str, Enum):
    """Processing status shown in the admin panel.

    New requests always start as ``new``; there is currently no
    operation moving a request to another status.
    """

    NEW = "new"
    QUOTED = "quoted"
    COMPLETED = "completed"


class ServiceRequestCreate(BaseModel):
    """Input of the public service request form."""

    client_name: str = Field(..., alias="clientName", min_length=1, examples=["John Smith"])
    client_email: str = Field(..., alias="clientEmail", min_length=1, examples=["john@example.com"])
    service_type: ServiceType = Field(..., alias="serviceType", examples=["maintenance"])
    description: str = Field(
        ...,
        min_length=1,
        description="Problem or request description",
        examples=["The unit is leaking near the intake valve"],
    )

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("client_name", "client_email", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        # Stored exactly as typed; only blank input is refused.
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class ServiceRequest(BaseModel):
    """A stored service request."""

    kind: Literal["serviceRequest"] = "serviceRequest"
    id: str
    client_name: str = Field(..., alias="clientName")
    client_email: str = Field(..., alias="clientEmail")
    service_type: ServiceType = Field(..., alias="serviceType")
    description: str
    submitted_at: datetime = Field(..., alias="submittedAt")
    status: RequestStatus = RequestStatus.NEW
    submitter_id: Optional[str] = Field(None, alias="submitterId")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }
