import re
import unittest

from airfryhub.errors import RemoteCallFailed, ValidationFailed
from airfryhub.storage import InMemoryStorageClient
from airfryhub.uploads import UploadProgress, build_image_path, upload_image


class UploadProgressTests(unittest.TestCase):
    def test_progress_stalls_at_90_then_completes(self):
        progress = UploadProgress()
        values = [progress.tick() for _ in range(12)]
        self.assertEqual(values[:9], [10, 20, 30, 40, 50, 60, 70, 80, 90])
        self.assertEqual(values[-1], 90)
        self.assertEqual(progress.complete(), 100)
        self.assertEqual(progress.reset(), 0)


class ImagePathTests(unittest.TestCase):
    def test_path_format(self):
        path = build_image_path("Dinner.PNG", now_ms=1700000000000)
        self.assertRegex(path, r"^images/1700000000000-[0-9a-z]{6}\.PNG$")

    def test_missing_extension(self):
        self.assertTrue(build_image_path("blob", now_ms=1).endswith(".bin"))

    def test_paths_are_randomized(self):
        paths = {build_image_path("a.jpg", now_ms=1) for _ in range(20)}
        self.assertGreater(len(paths), 1)


class UploadImageTests(unittest.TestCase):
    def setUp(self):
        self.storage = InMemoryStorageClient()

    def test_upload_returns_public_url(self):
        seen = []
        result = upload_image(
            self.storage, "fries.jpg", b"\xff\xd8data", "image/jpeg",
            on_progress=seen.append,
        )
        self.assertTrue(re.match(r"^images/\d+-[0-9a-z]+\.jpg$", result.path))
        self.assertEqual(result.url, self.storage.public_url(result.path))
        self.assertEqual(self.storage.get_bytes(result.path), b"\xff\xd8data")
        self.assertEqual(result.progress, [10, 100])
        self.assertEqual(seen, [10, 100])

    def test_rejects_non_images(self):
        with self.assertRaises(ValidationFailed) as ctx:
            upload_image(self.storage, "notes.txt", b"hi", "text/plain")
        self.assertEqual(
            ctx.exception.errors["image_upload"], "Please select an image file"
        )
        self.assertEqual(self.storage.stored_objects, {})

    def test_rejects_large_images(self):
        with self.assertRaises(ValidationFailed) as ctx:
            upload_image(
                self.storage, "big.png", b"x" * (5 * 1024 * 1024 + 1), "image/png"
            )
        self.assertEqual(
            ctx.exception.errors["image_upload"], "Image size must be less than 5MB"
        )

    def test_accepts_image_at_size_limit(self):
        result = upload_image(
            self.storage, "max.png", b"x" * (5 * 1024 * 1024), "image/png"
        )
        self.assertEqual(result.progress, [10, 100])
        self.assertIn(result.path, self.storage.stored_objects)

    def test_storage_failure_resets_progress(self):
        class FailingStorage(InMemoryStorageClient):
            def upload_bytes(self, path, data, content_type):
                raise RemoteCallFailed("bucket not found")

        progress = UploadProgress()
        with self.assertRaises(RemoteCallFailed) as ctx:
            upload_image(
                FailingStorage(), "a.png", b"x", "image/png", progress=progress
            )
        self.assertIn("Failed to upload image", ctx.exception.message)
        self.assertEqual(progress.percent, 0)


if __name__ == "__main__":
    unittest.main()
