"""Pydantic models for the pairing API."""

from pydantic import BaseModel, ConfigDict, Field


class PairRequest(BaseModel):
    """Body of a pairing code request."""

    phone: str | None = None


class ApiMessage(BaseModel):
    """Generic success flag with a human readable message."""

    success: bool
    message: str


class PairResponse(BaseModel):
    """Successful pairing code response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    code: str
    session_id: str = Field(serialization_alias="sessionId")
    message: str = "Pairing code generated!"


class StatusResponse(BaseModel):
    """Current state of a session, or ``not_found``."""

    status: str


class SessionStringResponse(BaseModel):
    """Encoded credentials for a connected session."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_id: str = Field(serialization_alias="sessionId")
    session_string: str = Field(serialization_alias="sessionString")
