from sqlalchemy import Column, Integer, String, Text, Float, Boolean, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime_utils import utcnow
from constants.task_status import TaskStatus
from constants.enums import Priority, ProjectStatus, MilestoneStatus

class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    users = relationship("User", back_populates="role")

class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String, nullable=True)
    manager = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    users = relationship("User", back_populates="department")
    projects = relationship("Project", back_populates="department")

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    bio = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    skills = Column(Text, nullable=True)
    avatar = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    role = relationship("Role", back_populates="users")
    department = relationship("Department", back_populates="users")
    tasks = relationship("Task", back_populates="assignee", foreign_keys="[Task.assignee_id]")
    project_memberships = relationship("ProjectTeamMember", back_populates="user", cascade="all, delete-orphan")
    managed_projects = relationship("Project", back_populates="manager")

    @property
    def is_admin(self):
        return bool(self.role and self.role.is_admin)

class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default=ProjectStatus.PLANNING.value)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    budget = Column(Float, nullable=True)
    budget_spent = Column(Float, nullable=True)
    budget_currency = Column(String(3), nullable=True)
    tags = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    manager = relationship("User", back_populates="managed_projects")
    department = relationship("Department", back_populates="projects")
    team_members = relationship("ProjectTeamMember", back_populates="project", cascade="all, delete-orphan")
    milestones = relationship("Milestone", back_populates="project", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="project")

class ProjectTeamMember(Base):
    __tablename__ = "project_team_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_team_member"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String, nullable=False, default="member")
    joined_at = Column(DateTime, default=utcnow)

    project = relationship("Project", back_populates="team_members")
    user = relationship("User", back_populates="project_memberships")

class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=MilestoneStatus.NOT_STARTED.value)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    project = relationship("Project", back_populates="milestones")
    tasks = relationship("Task", back_populates="milestone")

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value)
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True)
    tags = Column(Text, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    money_spent = Column(Float, nullable=True, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    assignee = relationship("User", back_populates="tasks", foreign_keys=[assignee_id])
    project = relationship("Project", back_populates="tasks")
    milestone = relationship("Milestone", back_populates="tasks")
    ratings = relationship("AccuracyRating", back_populates="task", cascade="all, delete-orphan")

class AccuracyRating(Base):
    __tablename__ = "accuracy_ratings"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    accuracy_score = Column(Integer, nullable=False)
    quality_rating = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=True)
    rated_at = Column(DateTime, default=utcnow)

    task = relationship("Task", back_populates="ratings")
