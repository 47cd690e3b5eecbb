import unittest
from datetime import datetime

from models import Milestone
from routers.milestones import derive_milestone_status
from tests.helpers import APITestCase

class TestDeriveMilestoneStatus(unittest.TestCase):

    def test_without_tasks_keeps_status(self):
        self.assertEqual(derive_milestone_status([], "in_progress"), "in_progress")

    def test_nothing_done(self):
        self.assertEqual(derive_milestone_status(["todo", "in_progress"], "completed"), "not_started")

    def test_some_done(self):
        self.assertEqual(derive_milestone_status(["done", "todo"], "not_started"), "in_progress")

    def test_all_done(self):
        self.assertEqual(derive_milestone_status(["done", "done"], "in_progress"), "completed")

class TestMilestonesAPI(APITestCase):

    def setUp(self):
        super().setUp()
        self.project = self.create_project()

    def add_milestone(self, name, deadline=None, **fields):
        milestone = Milestone(name=name, deadline=deadline, project_id=self.project.id, **fields)
        self.db.add(milestone)
        self.db.commit()
        self.db.refresh(milestone)
        return milestone

    def test_create_milestone(self):
        response = self.client.post(
            "/api/milestones",
            json={"name": "Beta release", "project_id": self.project.id, "deadline": "2024-06-01T12:00:00Z"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["status"], "not_started")
        self.assertTrue(data["deadline"].startswith("2024-06-01T12:00:00"))

    def test_create_for_missing_project(self):
        response = self.client.post(
            "/api/milestones",
            json={"name": "Orphan", "project_id": 999},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 404)

    def test_member_cannot_create_milestone(self):
        response = self.client.post(
            "/api/milestones",
            json={"name": "Beta", "project_id": self.project.id},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 403)

    def test_project_milestones_sorted_by_deadline(self):
        self.add_milestone("No deadline")
        self.add_milestone("Later", datetime(2024, 9, 1))
        self.add_milestone("Sooner", datetime(2024, 3, 1))

        response = self.client.get(f"/api/milestones/project/{self.project.id}", headers=self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["name"] for m in response.json()], ["Sooner", "Later", "No deadline"])

    def test_update_and_delete(self):
        milestone = self.add_milestone("Alpha")
        response = self.client.put(
            f"/api/milestones/{milestone.id}",
            json={"description": "First usable build"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["description"], "First usable build")
        self.assertEqual(response.json()["project_id"], self.project.id)

        response = self.client.delete(f"/api/milestones/{milestone.id}", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"/api/milestones/{milestone.id}", headers=self.member_headers)
        self.assertEqual(response.status_code, 404)

    def test_null_status_keeps_stored_status(self):
        milestone = self.add_milestone("Alpha", status="in_progress")
        response = self.client.put(
            f"/api/milestones/{milestone.id}",
            json={"name": None, "status": None},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Alpha")
        self.assertEqual(response.json()["status"], "in_progress")

    def test_update_status_from_tasks(self):
        milestone = self.add_milestone("Alpha")
        self.create_task("One", project_id=self.project.id, milestone_id=milestone.id, status="done")
        self.create_task("Two", project_id=self.project.id, milestone_id=milestone.id, status="todo")

        response = self.client.put(f"/api/milestones/{milestone.id}/update-status", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "in_progress")

if __name__ == "__main__":
    unittest.main(verbosity=2)
