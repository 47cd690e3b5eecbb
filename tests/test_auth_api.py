import logging
import unittest

from tests.helpers import APITestCase, TEST_PASSWORD

logger = logging.getLogger(__name__)

class TestAuthAPI(APITestCase):

    def setUp(self):
        """Setup test case"""
        super().setUp()
        self.test_user = {
            "name": "New User",
            "email": "test@example.com",
            "password": "test123456"
        }

    def register(self):
        return self.client.post("/api/auth/register", json=self.test_user)

    def test_1_register(self):
        """Test user registration"""
        response = self.register()
        logger.info(f"Registration Response: {response.status_code} - {response.text}")
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data["token_type"], "bearer")
        self.assertTrue(data["access_token"])
        self.assertEqual(data["user"]["email"], self.test_user["email"])
        self.assertNotIn("hashed_password", data["user"])

    def test_2_login(self):
        """Test user login"""
        self.register()

        response = self.client.post(
            "/api/auth/login",
            data={"username": self.test_user["email"], "password": self.test_user["password"]}
        )
        logger.info(f"Login Response: {response.status_code} - {response.text}")
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertIn("access_token", data)
        self.assertEqual(data["token_type"], "bearer")
        self.assertEqual(data["user"]["name"], "New User")

    def test_3_invalid_login(self):
        """Test login with invalid credentials"""
        response = self.client.post(
            "/api/auth/login",
            data={"username": self.member.email, "password": "wrongpassword"}
        )
        self.assertEqual(response.status_code, 401)

        response = self.client.post(
            "/api/auth/login",
            data={"username": "nobody@example.com", "password": TEST_PASSWORD}
        )
        self.assertEqual(response.status_code, 401)

    def test_4_duplicate_registration(self):
        """Test registering with existing email"""
        self.register()
        response = self.register()
        self.assertEqual(response.status_code, 409)

    def test_register_rejects_short_password(self):
        self.test_user["password"] = "short"
        response = self.register()
        self.assertEqual(response.status_code, 422)

    def test_profile(self):
        response = self.client.get("/api/auth/profile", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["email"], "admin@example.com")
        self.assertTrue(data["is_admin"])
        self.assertEqual(data["role"]["name"], "Admin")
        self.assertEqual(data["department"]["name"], "Engineering")

    def test_profile_requires_valid_token(self):
        response = self.client.get("/api/auth/profile")
        self.assertEqual(response.status_code, 401)

        response = self.client.get("/api/auth/profile", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(response.status_code, 401)

    def test_token_from_login_is_accepted(self):
        response = self.client.post(
            "/api/auth/login",
            data={"username": self.member.email, "password": TEST_PASSWORD}
        )
        token = response.json()["access_token"]

        response = self.client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["is_admin"])

if __name__ == "__main__":
    unittest.main(verbosity=2)
