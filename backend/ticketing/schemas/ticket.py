"""
Pydantic schemas for ticket request/response validation.
The wire name for a ticket's description is `desc`.
"""

from pydantic import AliasChoices, BaseModel, Field


class TicketCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    desc: str = Field(..., min_length=1)
    allocation: int = Field(..., ge=1)


class TicketResponse(BaseModel):
    id: int
    name: str
    desc: str = Field(validation_alias=AliasChoices("desc", "description"))
    allocation: int

    model_config = {"from_attributes": True}
