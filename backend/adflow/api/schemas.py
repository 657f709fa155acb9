from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from adflow.core.config import settings
from adflow.services.script_rules import ScriptStatus
from adflow.services.task_state_machine import TaskAction, TaskStatus, TaskType

ScriptSectionName = Literal["hook", "problemSetup", "solution", "proof", "cta", "closing"]


# ---------------------------------------------------------------------------
# Team members
# ---------------------------------------------------------------------------


class TeamMemberCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=100)
    capacity_hours: float = Field(
        default=settings.default_capacity_hours, ge=0, le=settings.max_capacity_hours
    )


class TeamMemberUpdate(BaseModel):
    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    role: str | None = Field(default=None, min_length=1, max_length=100)
    capacity_hours: float | None = Field(default=None, ge=0, le=settings.max_capacity_hours)


class TeamMemberBrief(BaseModel):
    id: int
    name: str
    role: str

    model_config = {"from_attributes": True}


class TeamMemberResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    capacity_hours: float
    assigned_hours: float = 0
    task_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    type: TaskType
    script_id: int
    assignee_id: int | None = None
    estimated_time: float = Field(..., ge=0)
    due_date: datetime | None = None
    scheduled_for: datetime | None = None
    notes: str | None = None


class TaskUpdate(BaseModel):
    type: TaskType | None = None
    status: TaskStatus | None = None
    assignee_id: int | None = None
    estimated_time: float | None = Field(default=None, ge=0)
    actual_time: float | None = Field(default=None, ge=0)
    due_date: datetime | None = None
    scheduled_for: datetime | None = None
    notes: str | None = None
    blockers: str | None = None


class TaskTransitionRequest(BaseModel):
    action: TaskAction


class TaskResponse(BaseModel):
    id: int
    type: str
    status: str
    script_id: int
    assignee_id: int | None
    assignee: TeamMemberBrief | None = None
    estimated_time: float
    actual_time: float | None
    due_date: datetime | None
    scheduled_for: datetime | None
    notes: str | None
    blockers: str | None
    completed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PipelineTaskResponse(TaskResponse):
    is_unblocked: bool
    available_actions: list[str]


class ProductionTaskConfig(BaseModel):
    type: TaskType
    estimated_time: float = Field(..., ge=1)
    assignee_id: int | None = None
    due_date: datetime | None = None
    notes: str | None = None


class ProductionTasksCreate(BaseModel):
    tasks: list[ProductionTaskConfig] = Field(..., min_length=1)


class ProductionTasksResponse(BaseModel):
    tasks: list[TaskResponse]
    script_status: str


# ---------------------------------------------------------------------------
# Production requirements
# ---------------------------------------------------------------------------


class Deliverable(BaseModel):
    aspect_ratio: str
    with_captions: bool = True
    without_captions: bool = False


class ProductionRequirementCreate(BaseModel):
    location_type: str = Field(..., min_length=1, max_length=100)
    talent_needed: str = Field(..., min_length=1, max_length=255)
    props_required: list[str] = []
    product_samples: bool = False
    sample_quantity: int | None = Field(default=None, ge=0)
    equipment_notes: str | None = None
    frame_rate: int = Field(default=30, ge=1)
    audio_type: list[str] = []
    style_reference: str | None = None
    transitions: str | None = None
    color_grade: str | None = None
    music_style: str | None = None
    deliverables: list[Deliverable] = []


class ProductionRequirementResponse(ProductionRequirementCreate):
    id: int
    script_id: int

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


class ScriptSection(BaseModel):
    name: str
    start_time: float
    end_time: float
    spoken_text: str
    visual_direction: str
    text_overlay: str | None = None
    transition: str | None = None


class ScriptCreate(BaseModel):
    concept_id: int | None = None
    title: str = Field(..., min_length=1, max_length=255)
    content: dict[ScriptSectionName, ScriptSection] = {}
    duration: int = Field(..., ge=1)
    aspect_ratios: list[str] = []
    text_overlays: list[dict] = []


class ScriptStatusUpdate(BaseModel):
    status: ScriptStatus


class ScriptVersionCreate(BaseModel):
    updated_sections: dict[ScriptSectionName, ScriptSection] = Field(..., min_length=1)
    edit_source: Literal["manual", "ai"] = "manual"


class ScriptResponse(BaseModel):
    id: int
    concept_id: int | None
    title: str
    version: int
    content: dict
    duration: int
    aspect_ratios: list[str]
    text_overlays: list[dict]
    status: str
    approved_at: datetime | None
    parent_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScriptListItem(ScriptResponse):
    task_count: int = 0


class ScriptDetailResponse(ScriptResponse):
    production_req: ProductionRequirementResponse | None = None
    tasks: list[TaskResponse] = []
    child_versions: list[int] = []


class ScriptVersionResponse(BaseModel):
    script: ScriptResponse
    edit_source: str
    previous_version: int
    new_version: int


class ScriptPipelineResponse(BaseModel):
    script_id: int
    script_status: str
    current_stage: str | None
    tasks: list[PipelineTaskResponse]


# ---------------------------------------------------------------------------
# Production stats
# ---------------------------------------------------------------------------


class TeamMemberLoad(TeamMemberResponse):
    utilization: float


class ProductionStatsResponse(BaseModel):
    status_counts: dict[str, int]
    completed_today: int
    team_members: list[TeamMemberLoad]
    recent_tasks: list[TaskResponse]
