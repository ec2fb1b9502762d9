from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from contest_craze.utils.dates import to_naive_utc


class ContestStatus(str, Enum):
    """
    Contest status types - State Machine

    State Transitions:
    - PENDING -> CONFIRMED (admin approves)
    - PENDING -> REJECTED (admin rejects)
    - CONFIRMED -> CLOSED (owner declares the winner, terminal)
    """
    PENDING = "Pending"  # Owner can edit or delete, not listed publicly
    CONFIRMED = "Confirmed"  # Listed, accepting participants until the deadline
    REJECTED = "Rejected"
    CLOSED = "Closed"  # Winner declared


class ContestCreate(BaseModel):
    """Schema for creating a contest (status is always forced to Pending)"""
    name: str = Field(..., min_length=1, max_length=200)
    image: Optional[str] = None
    description: str = ""
    price: float = Field(0.0, ge=0, description="Entry fee")
    prize_money: float = Field(0.0, ge=0, alias="prizeMoney")
    task_instruction: Optional[str] = Field(None, alias="taskInstruction")
    type: str = Field(..., min_length=1, description="Category tag")
    deadline: datetime

    class Config:
        populate_by_name = True

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class ContestUpdate(BaseModel):
    """Schema for updating a contest (only owner, only in PENDING status)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    image: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    prize_money: Optional[float] = Field(None, ge=0, alias="prizeMoney")
    task_instruction: Optional[str] = Field(None, alias="taskInstruction")
    type: Optional[str] = Field(None, min_length=1)
    deadline: Optional[datetime] = None

    class Config:
        populate_by_name = True

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value) if value is not None else None


class ContestStatusUpdate(BaseModel):
    """Schema for admin approval decisions"""
    status: ContestStatus

    @field_validator("status")
    @classmethod
    def only_review_outcomes(cls, value: ContestStatus) -> ContestStatus:
        if value not in (ContestStatus.CONFIRMED, ContestStatus.REJECTED):
            raise ValueError("status must be Confirmed or Rejected")
        return value


class DeclareWinnerRequest(BaseModel):
    """Schema for the winner declaration request"""
    winner_email: EmailStr = Field(..., alias="winnerEmail")
    submission_id: Optional[str] = Field(None, alias="submissionId")

    class Config:
        populate_by_name = True
