import unittest

from auth import verify_password
from models import Department, Role, User
from tests.helpers import APITestCase

class TestUsersAPI(APITestCase):

    def test_admin_creates_user(self):
        response = self.client.post(
            "/api/users",
            json={
                "name": "Designer",
                "email": "designer@example.com",
                "password": "password123",
                "role_id": self.member_role.id,
                "department_id": self.engineering.id,
                "skills": "Figma"
            },
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["role"]["name"], "Team Member")
        self.assertFalse(data["is_admin"])

        user = self.db.query(User).filter(User.email == "designer@example.com").first()
        self.assertTrue(verify_password("password123", user.hashed_password))

    def test_duplicate_email_conflicts(self):
        response = self.client.post(
            "/api/users",
            json={"name": "Again", "email": self.member.email, "password": "password123"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 409)

    def test_member_cannot_create_user(self):
        response = self.client.post(
            "/api/users",
            json={"name": "Someone", "email": "someone@example.com", "password": "password123"},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 403)

    def test_unknown_role_is_404(self):
        response = self.client.post(
            "/api/users",
            json={"name": "Someone", "email": "someone@example.com", "password": "password123", "role_id": 999},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Role with ID 999 not found")

    def test_list_users_filters_by_department(self):
        design = Department(name="Design")
        self.db.add(design)
        self.db.commit()
        self.create_user("Designer", "designer@example.com", self.member_role, design)

        response = self.client.get(f"/api/users?department_id={design.id}", headers=self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([u["name"] for u in response.json()], ["Designer"])

        response = self.client.get("/api/users", headers=self.member_headers)
        self.assertEqual(len(response.json()), 3)

    def test_get_missing_user(self):
        response = self.client.get("/api/users/999", headers=self.member_headers)
        self.assertEqual(response.status_code, 404)

    def test_member_updates_own_profile(self):
        response = self.client.patch(
            f"/api/users/{self.member.id}",
            json={"bio": "Backend developer", "password": "newpassword1"},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "User updated successfully")
        self.assertEqual(response.json()["user"]["bio"], "Backend developer")

        member = self.refreshed(self.member)
        self.assertTrue(verify_password("newpassword1", member.hashed_password))

    def test_null_name_keeps_stored_name(self):
        response = self.client.patch(
            f"/api/users/{self.member.id}",
            json={"name": None, "bio": None},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["name"], "Member User")

    def test_member_cannot_change_own_role(self):
        response = self.client.patch(
            f"/api/users/{self.member.id}",
            json={"role_id": self.admin_role.id},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 403)

    def test_member_cannot_update_others(self):
        response = self.client.patch(
            f"/api/users/{self.admin.id}",
            json={"bio": "hijacked"},
            headers=self.member_headers
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_deletes_user(self):
        response = self.client.delete(f"/api/users/{self.member.id}", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        self.db.expire_all()
        self.assertIsNone(self.db.get(User, self.member.id))

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f"/api/users/{self.admin.id}", headers=self.admin_headers)
        self.assertEqual(response.status_code, 400)

class TestRolesAndDepartmentsAPI(APITestCase):

    def test_create_and_list_roles(self):
        response = self.client.post(
            "/api/roles",
            json={"name": "Manager", "description": "Project manager"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()["is_admin"])

        response = self.client.get("/api/roles", headers=self.member_headers)
        self.assertEqual([r["name"] for r in response.json()], ["Admin", "Manager", "Team Member"])

    def test_duplicate_role_name_conflicts(self):
        response = self.client.post("/api/roles", json={"name": "Admin"}, headers=self.admin_headers)
        self.assertEqual(response.status_code, 409)

    def test_member_cannot_create_role(self):
        response = self.client.post("/api/roles", json={"name": "Boss"}, headers=self.member_headers)
        self.assertEqual(response.status_code, 403)

    def test_update_role(self):
        response = self.client.patch(
            f"/api/roles/{self.member_role.id}",
            json={"description": "Contributor"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["description"], "Contributor")
        self.assertEqual(response.json()["name"], "Team Member")

    def test_null_role_fields_keep_stored_values(self):
        response = self.client.patch(
            f"/api/roles/{self.admin_role.id}",
            json={"name": None, "is_admin": None},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Admin")
        self.assertTrue(response.json()["is_admin"])

    def test_null_department_name_keeps_stored_name(self):
        response = self.client.patch(
            f"/api/departments/{self.engineering.id}",
            json={"name": None, "manager": "CTO"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Engineering")
        self.assertEqual(response.json()["manager"], "CTO")

    def test_renaming_role_to_existing_name_conflicts(self):
        response = self.client.patch(
            f"/api/roles/{self.member_role.id}",
            json={"name": "Admin"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "Role 'Admin' already exists")

    def test_delete_role_keeps_users(self):
        response = self.client.delete(f"/api/roles/{self.member_role.id}", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)

        self.db.expire_all()
        self.assertIsNone(self.db.get(Role, self.member_role.id))
        self.assertIsNone(self.db.get(User, self.member.id).role_id)

    def test_department_crud(self):
        response = self.client.post(
            "/api/departments",
            json={"name": "Marketing", "manager": "Marketing Director"},
            headers=self.admin_headers
        )
        self.assertEqual(response.status_code, 201)
        department_id = response.json()["id"]

        response = self.client.patch(
            f"/api/departments/{department_id}",
            json={"description": "Marketing and promotion team"},
            headers=self.admin_headers
        )
        self.assertEqual(response.json()["description"], "Marketing and promotion team")

        response = self.client.get(f"/api/departments/{department_id}", headers=self.member_headers)
        self.assertEqual(response.json()["manager"], "Marketing Director")

        response = self.client.delete(f"/api/departments/{department_id}", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"/api/departments/{department_id}", headers=self.member_headers)
        self.assertEqual(response.status_code, 404)

    def test_duplicate_department_conflicts(self):
        response = self.client.post("/api/departments", json={"name": "Engineering"}, headers=self.admin_headers)
        self.assertEqual(response.status_code, 409)

    def test_department_users(self):
        response = self.client.get(f"/api/departments/{self.engineering.id}/users", headers=self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual({u["email"] for u in response.json()}, {"admin@example.com", "member@example.com"})

    def test_delete_department_detaches_users(self):
        self.client.delete(f"/api/departments/{self.engineering.id}", headers=self.admin_headers)
        self.db.expire_all()
        self.assertIsNone(self.db.get(User, self.member.id).department_id)

if __name__ == "__main__":
    unittest.main(verbosity=2)
