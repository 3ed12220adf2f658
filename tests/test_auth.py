from datetime import timedelta

from app.core.security import create_access_token

from tests.helpers import API, APITestCase


class RegisterAPITestCase(APITestCase):
    def test_successful_registration(self):
        response = self.register("Alice@Example.com")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Registration successful. Please login to continue.")
        self.assertEqual(body["data"]["user"]["email"], "alice@example.com")
        self.assertNotIn("hashed_password", body["data"]["user"])

    def test_duplicate_email(self):
        self.register("alice@example.com")
        response = self.register("ALICE@example.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {
            "success": False,
            "message": "User with this email already exists",
        })

    def test_invalid_email_and_weak_password(self):
        response = self.register("not-an-email", password="abc")
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        errors = {e["field"]: e["message"] for e in body["errors"]}
        self.assertEqual(errors["email"], "Please provide a valid email address")
        self.assertEqual(errors["password"], "Password must be at least 6 characters long")

    def test_password_needs_a_number(self):
        response = self.register("bob@example.com", password="abcdefgh")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["errors"],
            [{"field": "password", "message": "Password must contain at least one number"}],
        )


class LoginAPITestCase(APITestCase):
    def setUp(self):
        super().setUp()
        self.register("alice@example.com")

    def test_login_returns_token(self):
        response = self.login("alice@example.com")
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["token_type"], "bearer")
        self.assertEqual(data["user"]["email"], "alice@example.com")

        me = self.client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["data"]["id"], data["user"]["id"])

    def test_wrong_password(self):
        response = self.login("alice@example.com", password="wrong123")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid email or password")

    def test_unknown_email(self):
        response = self.login("nobody@example.com")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid email or password")


class AuthenticationRequiredTestCase(APITestCase):
    def test_missing_token(self):
        response = self.client.get(f"{API}/posts")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["success"])
        self.assertEqual(response.headers["www-authenticate"], "Bearer")

    def test_garbage_token(self):
        response = self.client.get(f"{API}/posts", headers={"Authorization": "Bearer not.a.jwt"})
        self.assertEqual(response.status_code, 401)

    def test_expired_token(self):
        user_id, _ = self.create_user("alice@example.com")
        token = create_access_token(user_id, expires_delta=timedelta(minutes=-1))
        response = self.client.get(f"{API}/posts", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 401)

    def test_token_for_unknown_user(self):
        token = create_access_token("missing-user-id")
        response = self.client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "User not found")
