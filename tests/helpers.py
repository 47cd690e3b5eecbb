import logging
import unittest
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import create_access_token, get_password_hash
from database import Base, get_db
from main import app
from models import Role, Department, User, Project, Task
from datetime_utils import utcnow

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TEST_PASSWORD = "password123"
# Hashing is slow on purpose, so every test user shares one hash
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

class APITestCase(unittest.TestCase):
    """Runs the app against a fresh in-memory database with an admin and a member user."""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.SessionLocal()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        self.admin_role = Role(name="Admin", description="Administrator with full access", is_admin=True)
        self.member_role = Role(name="Team Member", description="Regular team member")
        self.engineering = Department(name="Engineering", description="Software development team")
        self.db.add_all([self.admin_role, self.member_role, self.engineering])
        self.db.commit()

        self.admin = self.create_user("Admin User", "admin@example.com", self.admin_role, self.engineering)
        self.member = self.create_user("Member User", "member@example.com", self.member_role, self.engineering)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

    def create_user(self, name, email, role=None, department=None) -> User:
        user = User(
            name=name,
            email=email,
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            department=department,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def create_project(self, name="Website Redesign", **fields) -> Project:
        project = Project(name=name, **fields)
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    def create_task(self, title="Write docs", assignee=None, created_days_ago=0, **fields) -> Task:
        created_at = utcnow() - timedelta(days=created_days_ago)
        task = Task(
            title=title,
            assignee_id=assignee.id if assignee else None,
            created_at=created_at,
            updated_at=fields.pop("updated_at", created_at),
            **fields
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def auth_headers(self, user: User) -> dict:
        token = create_access_token(data={"sub": user.email, "uid": user.id})
        return {"Authorization": f"Bearer {token}"}

    @property
    def admin_headers(self) -> dict:
        return self.auth_headers(self.admin)

    @property
    def member_headers(self) -> dict:
        return self.auth_headers(self.member)

    def refreshed(self, instance):
        """Re-read a row after the API changed it through another session."""
        self.db.expire_all()
        return self.db.get(type(instance), instance.id)
