from unittest import mock

from app.modules.likes.models.like import Like
from app.modules.likes.schemas.like import LikeTarget
from app.modules.likes.services.like import toggle_like, get_likers, count_likes

from tests.helpers import API, APITestCase


class PostLikeTestCase(APITestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice = self.create_user("alice@example.com")
        self.bob_id, self.bob = self.create_user("bob@example.com")
        self.post = self.create_post(self.alice)

    def like(self, headers, post_id=None):
        return self.client.post(f"{API}/posts/{post_id or self.post['id']}/like", headers=headers)

    def test_toggle_twice(self):
        response = self.like(self.bob)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Post liked")
        self.assertEqual(response.json()["data"], {"is_liked": True, "like_count": 1})

        response = self.like(self.bob)
        self.assertEqual(response.json()["message"], "Post unliked")
        self.assertEqual(response.json()["data"], {"is_liked": False, "like_count": 0})

    def test_count_includes_other_users(self):
        self.like(self.alice)
        response = self.like(self.bob)
        self.assertEqual(response.json()["data"], {"is_liked": True, "like_count": 2})

    def test_like_missing_post(self):
        response = self.like(self.bob, post_id="missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Post not found")
        self.assertEqual(self.db.query(Like).count(), 0)

    def test_likers_most_recent_first(self):
        self.like(self.alice)
        self.like(self.bob)

        response = self.client.get(f"{API}/posts/{self.post['id']}/likes", headers=self.alice)
        self.assertEqual(response.status_code, 200)
        likers = response.json()["data"]
        self.assertEqual(
            [liker["user"] for liker in likers],
            [
                {"id": self.bob_id, "email": "bob@example.com"},
                {"id": self.alice_id, "email": "alice@example.com"},
            ],
        )
        self.assertIn("liked_at", likers[0])


class CommentLikeTestCase(APITestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice = self.create_user("alice@example.com")
        self.bob_id, self.bob = self.create_user("bob@example.com")
        self.post = self.create_post(self.alice)
        self.comment = self.create_comment(self.alice, self.post["id"])

    def test_toggle_comment_like(self):
        url = f"{API}/comments/{self.comment['id']}/like"
        response = self.client.post(url, headers=self.bob)
        self.assertEqual(response.json()["message"], "Comment liked")
        self.assertEqual(response.json()["data"], {"is_liked": True, "like_count": 1})

        response = self.client.post(url, headers=self.bob)
        self.assertEqual(response.json()["message"], "Comment unliked")
        self.assertEqual(response.json()["data"], {"is_liked": False, "like_count": 0})

    def test_post_and_comment_likes_are_separate(self):
        self.client.post(f"{API}/comments/{self.comment['id']}/like", headers=self.bob)
        post_view = self.client.get(f"{API}/posts/{self.post['id']}", headers=self.bob).json()["data"]
        self.assertEqual(post_view["like_count"], 0)
        self.assertFalse(post_view["is_liked"])

    def test_like_missing_comment(self):
        response = self.client.post(f"{API}/comments/missing/like", headers=self.bob)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Comment not found")

    def test_comment_likers(self):
        self.client.post(f"{API}/comments/{self.comment['id']}/like", headers=self.bob)
        response = self.client.get(f"{API}/comments/{self.comment['id']}/likes", headers=self.alice)
        self.assertEqual([liker["user"]["id"] for liker in response.json()["data"]], [self.bob_id])

    def test_reply_likes_outlive_deleted_parent(self):
        reply = self.create_reply(self.bob, self.comment["id"])
        self.client.post(f"{API}/comments/{reply['id']}/like", headers=self.alice)

        self.client.delete(f"{API}/comments/{self.comment['id']}", headers=self.alice)

        self.assertEqual(count_likes(self.db, LikeTarget.comment(reply["id"])), 1)


class LikeServiceTestCase(APITestCase):
    def setUp(self):
        super().setUp()
        self.user_id, _ = self.create_user("alice@example.com")

    def test_toggle_does_not_check_target(self):
        target = LikeTarget.post("does-not-exist")
        result = toggle_like(self.db, self.user_id, target)
        self.assertTrue(result.is_liked)
        self.assertEqual(result.like_count, 1)
        self.assertEqual(len(get_likers(self.db, target)), 1)

    def test_concurrent_duplicate_like_is_reported_as_liked(self):
        target = LikeTarget.post("some-post")
        toggle_like(self.db, self.user_id, target)

        # Simulate a request that read "not liked" before the other one committed
        with mock.patch("app.modules.likes.services.like.get_like", return_value=None):
            result = toggle_like(self.db, self.user_id, target)

        self.assertTrue(result.is_liked)
        self.assertEqual(result.like_count, 1)
        self.assertEqual(self.db.query(Like).count(), 1)
