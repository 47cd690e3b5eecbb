from pydantic import BaseModel, EmailStr, Field, constr, validator
from datetime import date, datetime
from typing import Optional, List
from constants.task_status import TaskStatus

PRIORITY_PATTERN = '^(low|medium|high)$'
TASK_STATUS_PATTERN = '^(todo|in_progress|done)$'
PROJECT_STATUS_PATTERN = '^(planning|active|on-hold|completed)$'
MILESTONE_STATUS_PATTERN = '^(not_started|in_progress|completed)$'

# Roles

class RoleBase(BaseModel):
    name: constr(min_length=1, max_length=100)
    description: Optional[str] = None
    is_admin: bool = False

    class Config:
        from_attributes = True

class RoleCreate(RoleBase):
    pass

class RoleUpdate(BaseModel):
    name: Optional[constr(min_length=1, max_length=100)] = None
    description: Optional[str] = None
    is_admin: Optional[bool] = None

class RoleResponse(RoleBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

# Departments

class DepartmentBase(BaseModel):
    name: constr(min_length=1, max_length=100)
    description: Optional[str] = None
    manager: Optional[str] = None

    class Config:
        from_attributes = True

class DepartmentCreate(DepartmentBase):
    pass

class DepartmentUpdate(BaseModel):
    name: Optional[constr(min_length=1, max_length=100)] = None
    description: Optional[str] = None
    manager: Optional[str] = None

class DepartmentResponse(DepartmentBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

# Users

class UserBase(BaseModel):
    name: constr(min_length=1, max_length=100)
    email: EmailStr
    bio: Optional[str] = None
    phone: Optional[constr(max_length=30)] = None
    skills: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        from_attributes = True

class UserCreate(UserBase):
    password: constr(min_length=8)
    role_id: Optional[int] = None
    department_id: Optional[int] = None

class UserUpdate(BaseModel):
    name: Optional[constr(min_length=1, max_length=100)] = None
    password: Optional[constr(min_length=8)] = None
    role_id: Optional[int] = None
    department_id: Optional[int] = None
    bio: Optional[str] = None
    phone: Optional[constr(max_length=30)] = None
    skills: Optional[str] = None
    avatar: Optional[str] = None

class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class UserResponse(UserBase):
    id: int
    email: str
    role_id: Optional[int] = None
    department_id: Optional[int] = None
    role: Optional[RoleResponse] = None
    department: Optional[DepartmentResponse] = None
    is_admin: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

class UserUpdateResponse(BaseModel):
    message: str
    user: UserResponse

# Auth

class RegisterRequest(BaseModel):
    name: constr(min_length=1, max_length=100)
    email: EmailStr
    password: constr(min_length=8)

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserSummary

# Projects

class ProjectBase(BaseModel):
    name: constr(min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: constr(pattern=PROJECT_STATUS_PATTERN) = "planning"
    priority: constr(pattern=PRIORITY_PATTERN) = "medium"
    manager_id: Optional[int] = None
    department_id: Optional[int] = None
    budget: Optional[float] = Field(default=None, ge=0)
    budget_spent: Optional[float] = Field(default=None, ge=0)
    budget_currency: Optional[constr(min_length=3, max_length=3)] = None
    tags: Optional[str] = None

    class Config:
        from_attributes = True

class ProjectCreate(ProjectBase):
    @validator('end_date')
    def validate_end_date(cls, v, values):
        start = values.get('start_date')
        if v is not None and start is not None and v < start:
            raise ValueError("end_date cannot be before start_date")
        return v

class ProjectUpdate(BaseModel):
    name: Optional[constr(min_length=1)] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[constr(pattern=PROJECT_STATUS_PATTERN)] = None
    priority: Optional[constr(pattern=PRIORITY_PATTERN)] = None
    manager_id: Optional[int] = None
    department_id: Optional[int] = None
    tags: Optional[str] = None

class ProjectResponse(ProjectBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

class ProjectUpdateResponse(BaseModel):
    message: str
    project: ProjectResponse

class TeamMemberCreate(BaseModel):
    user_id: int
    role: constr(min_length=1) = "member"

class TeamMemberResponse(BaseModel):
    id: int
    project_id: int
    user_id: int
    role: str
    joined_at: datetime
    user: UserSummary

    class Config:
        from_attributes = True

class BudgetUpdate(BaseModel):
    budget: float = Field(ge=0)
    budget_spent: Optional[float] = Field(default=None, ge=0)
    budget_currency: constr(min_length=3, max_length=3) = "USD"

class BudgetSummary(BaseModel):
    project_id: int
    budget: Optional[float] = None
    spent: float
    remaining: Optional[float] = None
    currency: str
    utilization: float
    status: str

# Milestones

class MilestoneBase(BaseModel):
    name: constr(min_length=1)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    status: constr(pattern=MILESTONE_STATUS_PATTERN) = "not_started"

    class Config:
        from_attributes = True

class MilestoneCreate(MilestoneBase):
    project_id: int

class MilestoneUpdate(BaseModel):
    name: Optional[constr(min_length=1)] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    status: Optional[constr(pattern=MILESTONE_STATUS_PATTERN)] = None
    project_id: Optional[int] = None

class MilestoneResponse(MilestoneBase):
    id: int
    project_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

# Tasks

class TaskBase(BaseModel):
    title: constr(min_length=1)
    description: Optional[str] = None
    priority: constr(pattern=PRIORITY_PATTERN) = "medium"
    status: constr(pattern=TASK_STATUS_PATTERN) = TaskStatus.TODO.value
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    project_id: Optional[int] = None
    milestone_id: Optional[int] = None
    tags: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    money_spent: Optional[float] = Field(default=None, ge=0)

    class Config:
        from_attributes = True

class TaskCreate(TaskBase):
    pass

class TaskUpdate(BaseModel):
    title: Optional[constr(min_length=1)] = None
    description: Optional[str] = None
    priority: Optional[constr(pattern=PRIORITY_PATTERN)] = None
    status: Optional[constr(pattern=TASK_STATUS_PATTERN)] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    project_id: Optional[int] = None
    milestone_id: Optional[int] = None
    tags: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    money_spent: Optional[float] = Field(default=None, ge=0)

class TaskStatusUpdate(BaseModel):
    status: str

    @validator('status')
    def validate_status(cls, v):
        if not TaskStatus.has_value(v):
            raise ValueError(f"Invalid status. Must be one of: {TaskStatus.values()}")
        return v

class TaskResponse(TaskBase):
    id: int
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    assignee: Optional[UserSummary] = None

class TaskUpdateResponse(BaseModel):
    message: str
    task: TaskResponse

class MessageResponse(BaseModel):
    message: str
