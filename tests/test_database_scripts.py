import unittest
from datetime import date, datetime

from migrations.fix_null_start_dates import fix_null_start_dates
from models import Department, Project, Role, Task, User
from seed import seed_database
from init_db import init_database
from reset_db import reset_database
from tests.helpers import APITestCase

class TestSeed(APITestCase):

    def clear_database(self):
        for model in (User, Role, Department):
            self.db.query(model).delete()
        self.db.commit()

    def test_skipped_when_users_exist(self):
        self.assertFalse(seed_database(self.db))
        self.assertEqual(self.db.query(Project).count(), 0)

    def test_seeds_empty_database(self):
        self.clear_database()

        self.assertTrue(seed_database(self.db))
        admin = self.db.query(User).filter(User.email == "admin@example.com").first()
        self.assertTrue(admin.is_admin)
        self.assertEqual(self.db.query(Project).count(), 3)
        self.assertGreater(self.db.query(Task).filter(Task.status == "done").count(), 0)

        # second run is a no-op
        self.assertFalse(seed_database(self.db))
        self.assertEqual(self.db.query(Project).count(), 3)

    def test_seeded_admin_can_log_in(self):
        self.clear_database()
        seed_database(self.db)

        response = self.client.post("/api/auth/login", data={"username": "admin@example.com", "password": "password123"})
        self.assertEqual(response.status_code, 200)

class TestFixNullStartDates(APITestCase):

    def test_start_date_taken_from_creation(self):
        missing = self.create_project("No start", created_at=datetime(2024, 2, 3, 10, 0))
        present = self.create_project("Has start", start_date=date(2024, 1, 1))

        self.assertEqual(fix_null_start_dates(self.db), 1)
        self.assertEqual(self.refreshed(missing).start_date, date(2024, 2, 3))
        self.assertEqual(self.refreshed(present).start_date, date(2024, 1, 1))

class TestSchemaScripts(APITestCase):

    def test_reset_drops_existing_rows(self):
        reset_database(self.engine)
        self.db.expire_all()
        self.assertEqual(self.db.query(User).count(), 0)

    def test_init_keeps_existing_rows(self):
        session = init_database(self.engine)
        try:
            self.assertEqual(session.query(User).count(), 2)
        finally:
            session.close()

if __name__ == "__main__":
    unittest.main(verbosity=2)
