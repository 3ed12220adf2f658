from unittest import TestCase

from fastapi.testclient import TestClient

from app.main import app
from app.db.session import Base, SessionLocal, engine

API = "/api/v1"


class APITestCase(TestCase):
    """Fresh schema and client per test, plus shortcuts for common calls"""

    password = "secret123"

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.client = TestClient(app)
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()
        app.dependency_overrides.clear()

    def register(self, email, password=None):
        return self.client.post(
            f"{API}/auth/register",
            json={"email": email, "password": password or self.password},
        )

    def login(self, email, password=None):
        return self.client.post(
            f"{API}/auth/login",
            json={"email": email, "password": password or self.password},
        )

    def create_user(self, email):
        """Register and log in; returns (user_id, auth headers)"""
        self.assertEqual(self.register(email).status_code, 201)
        data = self.login(email).json()["data"]
        return data["user"]["id"], {"Authorization": f"Bearer {data['token']}"}

    def create_post(self, headers, content="hello", privacy=None):
        form = {"content": content}
        if privacy is not None:
            form["privacy"] = privacy
        response = self.client.post(f"{API}/posts", data=form, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def create_comment(self, headers, post_id, text="nice post"):
        response = self.client.post(
            f"{API}/comments", json={"text": text, "post_id": post_id}, headers=headers
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def create_reply(self, headers, comment_id, text="thanks"):
        response = self.client.post(
            f"{API}/comments/{comment_id}/reply", json={"text": text}, headers=headers
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def feed(self, headers, **params):
        return self.client.get(f"{API}/posts", params=params, headers=headers)

    def comments_of(self, headers, post_id):
        response = self.client.get(f"{API}/comments/{post_id}", headers=headers)
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]
