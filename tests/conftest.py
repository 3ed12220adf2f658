import os
import tempfile

# Must run before anything imports app.core.config
_tmp_dir = tempfile.mkdtemp(prefix="social_feed_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["UPLOAD_DIRECTORY"] = os.path.join(_tmp_dir, "uploads")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["R2_ENDPOINT"] = ""
os.environ["R2_ACCESS_KEY_ID"] = ""
os.environ["R2_SECRET_ACCESS_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"
