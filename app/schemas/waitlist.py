from pydantic import BaseModel, Field
from typing import Optional
import uuid


class WaitlistRequest(BaseModel):
    """Registration body. Fields are optional so missing values get our own 400."""
    email: Optional[str] = None
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")

    class Config:
        populate_by_name = True


class WaitlistEntryOut(BaseModel):
    id: uuid.UUID
    position: int

    class Config:
        from_attributes = True


class WaitlistResponse(BaseModel):
    success: bool = True
    message: str
    entry: WaitlistEntryOut


class StatsResponse(BaseModel):
    total: int
    confirmed: int
    pending: int


class ErrorResponse(BaseModel):
    error: str
