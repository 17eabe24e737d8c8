from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from uuid import UUID
from typing import Optional, List, Dict, Any


class UserResponse(BaseModel):
    id: UUID
    created_at: datetime
    name: str
    email: str
    role: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ProgramCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    coach_id: Optional[UUID] = None  # super_admin only; coaches always own what they create


class ProgramResponse(BaseModel):
    id: UUID
    created_at: datetime
    coach_id: UUID
    name: str
    description: str

    model_config = ConfigDict(from_attributes=True)


class WorkoutCreate(BaseModel):
    target_muscle: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    sets: int = Field(..., ge=1)
    weight_equipment: Optional[str] = None


class WorkoutResponse(BaseModel):
    id: UUID
    created_at: datetime
    program_id: UUID
    target_muscle: str
    description: str
    sets: int
    weight_equipment: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AssignProgramRequest(BaseModel):
    user_id: UUID


class AssignmentResponse(BaseModel):
    id: UUID
    created_at: datetime
    user_id: UUID
    program_id: UUID
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AssignProgramResponse(BaseModel):
    message: str
    assignment: AssignmentResponse
    progress_entries: int


class MarkWorkoutRequest(BaseModel):
    user_id: UUID
    workout_id: UUID


class ProgressEntryResponse(BaseModel):
    id: UUID
    user_id: UUID
    workout_id: UUID
    status: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkWorkoutResponse(BaseModel):
    message: str
    progress: ProgressEntryResponse
    program_id: UUID
    program_completed: bool
    completed_at: Optional[datetime] = None


class FeedbackCreate(BaseModel):
    user_id: UUID
    program_id: UUID
    message: str = Field(..., min_length=1)


class FeedbackResponse(BaseModel):
    id: UUID
    created_at: datetime
    user_id: UUID
    program_id: UUID
    message: str

    model_config = ConfigDict(from_attributes=True)


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    new_password: str


class ActiveUpdateRequest(BaseModel):
    active: bool


class AuditRecordResponse(BaseModel):
    id: UUID
    created_at: datetime
    actor_id: UUID
    actor_name: Optional[str] = None
    action: str
    target_id: Optional[UUID] = None
    target_name: Optional[str] = None
    detail: Dict[str, Any] = Field(default_factory=dict)


class AuditLogListResponse(BaseModel):
    count: int
    items: List[AuditRecordResponse]
