import asyncio
import io
import os
import tempfile
from unittest import TestCase, mock

from botocore.exceptions import ClientError
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.config import settings
from app.core.errors import format_validation_errors
from app.core.exceptions import AppError, ValidationFailed
from app.core.storage import MediaStorage, StorageConfig

from tests.helpers import API, APITestCase


def make_upload(filename, content, content_type):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class MediaStorageTestCase(TestCase):
    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.storage = MediaStorage(StorageConfig(
            bucket="test",
            base_url="http://testserver",
            local_directory=self.directory,
            max_upload_size=1024 * 1024,
        ))

    def test_config_from_settings(self):
        config = StorageConfig.from_settings(settings)
        self.assertEqual(config.local_directory, settings.UPLOAD_DIRECTORY)
        self.assertEqual(config.api_prefix, "/api/v1")
        self.assertFalse(config.remote_enabled)
        self.assertIsNone(MediaStorage(config).client)

    def test_local_upload(self):
        url = asyncio.run(self.storage.upload_file(make_upload("Cat.PNG", b"png-bytes", "image/png")))
        self.assertTrue(url.startswith("http://testserver/api/v1/static/posts/"))
        self.assertTrue(url.endswith(".png"))

        key = url.split("/static/", 1)[1]
        with open(os.path.join(self.directory, key), "rb") as f:
            self.assertEqual(f.read(), b"png-bytes")

    def test_rejects_non_images(self):
        with self.assertRaises(ValidationFailed) as ctx:
            asyncio.run(self.storage.upload_file(make_upload("a.pdf", b"%PDF", "application/pdf")))
        self.assertEqual(ctx.exception.errors, [{"field": "image", "message": "Only image files are allowed"}])

    def test_rejects_large_images(self):
        content = b"x" * (1024 * 1024 + 1)
        with self.assertRaises(ValidationFailed) as ctx:
            asyncio.run(self.storage.upload_file(make_upload("big.jpg", content, "image/jpeg")))
        self.assertEqual(ctx.exception.errors[0]["message"], "Image must not exceed 1MB")


class RemoteMediaStorageTestCase(TestCase):
    def setUp(self):
        self.storage = MediaStorage(StorageConfig(
            bucket="media",
            endpoint="https://account.r2.cloudflarestorage.com",
            public_url="https://cdn.example.com",
        ))
        self.storage.client = mock.Mock()

    def upload(self):
        return asyncio.run(self.storage.upload_file(make_upload("cat.png", b"png-bytes", "image/png")))

    def test_put_object_and_public_url(self):
        url = self.upload()

        self.storage.client.put_object.assert_called_once()
        kwargs = self.storage.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "media")
        self.assertEqual(kwargs["Body"], b"png-bytes")
        self.assertEqual(kwargs["ContentType"], "image/png")
        self.assertTrue(kwargs["Key"].startswith("posts/"))
        self.assertTrue(kwargs["Key"].endswith(".png"))
        self.assertEqual(url, f"https://cdn.example.com/{kwargs['Key']}")

    def test_bucket_url_without_public_domain(self):
        self.storage.config.public_url = ""
        url = self.upload()

        key = self.storage.client.put_object.call_args.kwargs["Key"]
        self.assertEqual(url, f"https://account.r2.cloudflarestorage.com/media/{key}")

    def test_client_error_becomes_app_error(self):
        self.storage.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        with self.assertRaises(AppError) as ctx:
            self.upload()
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.message, "Failed to upload media")


class LocalImageServedTestCase(APITestCase):
    def test_uploaded_image_is_served(self):
        _, headers = self.create_user("alice@example.com")
        response = self.client.post(
            f"{API}/posts",
            data={"content": "picture"},
            files={"image": ("dog.jpg", b"jpeg-bytes", "image/jpeg")},
            headers=headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        image_url = response.json()["data"]["image"]
        self.assertIn(f"{API}/static/posts/", image_url)

        served = self.client.get(image_url.split(settings.BASE_URL, 1)[1])
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"jpeg-bytes")


class FormatValidationErrorsTestCase(TestCase):
    def test_location_prefix_is_dropped(self):
        errors = format_validation_errors([
            {"loc": ("body", "email"), "msg": "Value error, bad", "ctx": {"error": ValueError("bad")}},
            {"loc": ("query", "page"), "msg": "Input should be greater than or equal to 1"},
            {"loc": ("body",), "msg": "Field required"},
        ])
        self.assertEqual(errors, [
            {"field": "email", "message": "bad"},
            {"field": "page", "message": "Input should be greater than or equal to 1"},
            {"field": "body", "message": "Field required"},
        ])

    def test_invalid_json_reports_body(self):
        errors = format_validation_errors([
            {"type": "json_invalid", "loc": ("body", 1), "msg": "JSON decode error",
             "ctx": {"error": "Expecting property name enclosed in double quotes"}},
        ])
        self.assertEqual(errors, [
            {"field": "body", "message": "Expecting property name enclosed in double quotes"},
        ])
