import unittest
from datetime import timedelta

from dashboard_routes import calculate_days_difference
from datetime_utils import utcnow
from tests.helpers import APITestCase

class TestDashboardStatsAPI(APITestCase):

    def test_empty_dashboard(self):
        response = self.client.get("/api/dashboard/stats", headers=self.member_headers)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status_counts"], {"todo": 0, "in_progress": 0, "done": 0, "overdue": 0})
        self.assertEqual(data["completion_rate"], {"todo": 0, "in_progress": 0, "done": 0})
        self.assertEqual(data["longest_open_tasks"], [])
        self.assertEqual(data["overdue_tasks"], [])

    def test_dashboard_stats(self):
        now = utcnow()
        self.create_task("Old open", assignee=self.member, created_days_ago=20, due_date=now - timedelta(days=10))
        self.create_task("Slightly late", assignee=self.member, created_days_ago=3,
                         status="in_progress", due_date=now - timedelta(days=2))
        self.create_task("Done", assignee=self.admin, status="done", completed_at=now)
        self.create_task("Fresh", assignee=self.member)

        response = self.client.get("/api/dashboard/stats", headers=self.member_headers)
        self.assertEqual(response.status_code, 200)
        data = response.json()

        self.assertEqual(data["status_counts"], {"todo": 2, "in_progress": 1, "done": 1, "overdue": 2})
        self.assertEqual(data["completion_rate"], {"todo": 50.0, "in_progress": 25.0, "done": 25.0})

        self.assertEqual(data["most_active_users"][0]["name"], "Member User")
        self.assertEqual(data["most_active_users"][0]["task_count"], 3)

        self.assertEqual([t["title"] for t in data["longest_open_tasks"]], ["Old open", "Slightly late", "Fresh"])
        self.assertEqual(data["longest_open_tasks"][0]["days_open"], 20)

        overdue = data["overdue_tasks"]
        self.assertEqual([t["title"] for t in overdue], ["Old open", "Slightly late"])
        self.assertEqual(overdue[0]["priority"], "high")
        self.assertEqual(overdue[1]["priority"], "medium")
        self.assertEqual(overdue[0]["assignee"]["name"], "Member User")

    def test_requires_authentication(self):
        response = self.client.get("/api/dashboard/stats")
        self.assertEqual(response.status_code, 401)

    def test_days_difference(self):
        self.assertEqual(calculate_days_difference(None), 0)
        now = utcnow()
        self.assertEqual(calculate_days_difference(now - timedelta(days=3, hours=1), now), 3)

class TestSystemAPI(APITestCase):

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "ok")
        self.assertEqual(data["database"]["status"], "connected")
        self.assertIn("version", data)
        self.assertIn("environment", data)

    def test_ping(self):
        response = self.client.get("/api/ping")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertRegex(data["uptime"], r"^\d+d \d+h \d+m \d+s$")
        self.assertIn("platform", data["system"])

class TestFormatUptime(unittest.TestCase):

    def test_format(self):
        from main import format_uptime
        self.assertEqual(format_uptime(0), "0d 0h 0m 0s")
        self.assertEqual(format_uptime(90061), "1d 1h 1m 1s")

if __name__ == "__main__":
    unittest.main(verbosity=2)
