from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class SubmissionCreate(BaseModel):
    """Schema for creating a submission (participantName is stamped server-side)"""
    contest_id: str = Field(..., min_length=1, alias="contestId")
    participant_email: EmailStr = Field(..., alias="participantEmail")
    contest_name: Optional[str] = Field(None, alias="contestName")
    task: Optional[str] = Field(None, description="Task answer / description of the work")
    submission_link: Optional[str] = Field(None, alias="submissionLink")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True
