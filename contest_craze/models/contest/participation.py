from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class ParticipationCreate(BaseModel):
    """Payment-confirmed entry into a contest"""
    contest_id: str = Field(..., min_length=1, alias="contestId")
    participant_email: EmailStr = Field(..., alias="participantEmail")
    participant_name: Optional[str] = Field(None, alias="participantName")
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    price: Optional[float] = Field(None, ge=0)

    class Config:
        populate_by_name = True
