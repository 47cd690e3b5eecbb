from pydantic import BaseModel, Field, constr
from datetime import datetime
from typing import List, Optional

class TaskCompletionMetrics(BaseModel):
    completed: int
    percent_change: float
    previous_completed: int

class TimeMetrics(BaseModel):
    average_days: float
    days_change: float
    tasks_analyzed: int

class CategoryShare(BaseModel):
    name: str
    value: int
    percentage: float

class DailyActivity(BaseModel):
    day: str
    tasks: int
    hours: int

class EfficiencyMetrics(BaseModel):
    efficiency: int
    efficiency_change: float
    total_tasks: int
    completed_tasks: int

class OverdueMetrics(BaseModel):
    overdue_rate: int
    overdue_change: float
    overdue_tasks: int
    total_tasks: int

class TeamMemberPerformance(BaseModel):
    user_id: int
    name: str
    tasks: int
    hours: int
    efficiency: int

class MonthlyTrend(BaseModel):
    month: str
    year: int
    tasks: int
    hours: int
    efficiency: int

class DashboardMetrics(BaseModel):
    task_completion: TaskCompletionMetrics
    time_metrics: TimeMetrics
    category_distribution: List[CategoryShare]
    weekly_activity: List[DailyActivity]
    efficiency: EfficiencyMetrics
    overdue: OverdueMetrics

class UserTaskStatistics(BaseModel):
    user_id: int
    user_name: str
    user_email: str
    total_tasks: int
    tasks_completed: int
    tasks_in_progress: int
    tasks_open: int
    completion_rate: float
    avg_completion_time: float
    time_efficiency: int
    on_time_completion_rate: float
    accuracy_score: int
    quality_rating: float

class ProjectStatistics(BaseModel):
    project_id: int
    project_name: str
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    open_tasks: int
    completion_rate: float

class RateTaskRequest(BaseModel):
    task_id: int
    user_id: int
    accuracy_score: int = Field(ge=0, le=100)
    quality_rating: int = Field(ge=1, le=5)
    feedback: Optional[constr(max_length=2000)] = None

class AccuracyRatingResponse(BaseModel):
    id: int
    task_id: int
    user_id: int
    admin_id: Optional[int] = None
    accuracy_score: int
    quality_rating: int
    feedback: Optional[str] = None
    rated_at: datetime

    class Config:
        from_attributes = True
