import unittest

from airfryhub.errors import ValidationFailed
from airfryhub.validation import validate_comment, validate_post, validate_url


class PostValidationTests(unittest.TestCase):
    def assertRejected(self, payload, field, message):
        with self.assertRaises(ValidationFailed) as ctx:
            validate_post(payload)
        self.assertEqual(ctx.exception.errors.get(field), message)

    def test_title_length_bounds(self):
        self.assertRejected({"title": ""}, "title", "Title is required")
        self.assertRejected({"title": "   "}, "title", "Title is required")
        self.assertRejected(
            {"title": "ab"}, "title", "Title must be at least 3 characters"
        )
        self.assertRejected(
            {"title": "x" * 201}, "title", "Title must be less than 200 characters"
        )
        self.assertEqual(validate_post({"title": "abc"}).title, "abc")
        self.assertEqual(len(validate_post({"title": "x" * 200}).title), 200)

    def test_missing_title_is_required(self):
        self.assertRejected({}, "title", "Title is required")

    def test_title_is_trimmed(self):
        self.assertEqual(validate_post({"title": "  Fries  "}).title, "Fries")

    def test_content_capped_at_2000(self):
        self.assertEqual(
            len(validate_post({"title": "Fries", "content": "c" * 2000}).content),
            2000,
        )
        self.assertRejected(
            {"title": "Fries", "content": "c" * 2001},
            "content",
            "Content must be less than 2000 characters",
        )

    def test_content_defaults_to_empty(self):
        self.assertEqual(validate_post({"title": "Fries", "content": None}).content, "")

    def test_malformed_urls_rejected(self):
        for field in ("image_url", "link_url"):
            for bad in ("not a url", "example.com/pic.jpg", "https://"):
                self.assertRejected(
                    {"title": "Fries", field: bad}, field, "Please enter a valid URL"
                )

    def test_blank_urls_become_none(self):
        data = validate_post({"title": "Fries", "image_url": "", "link_url": "  "})
        self.assertIsNone(data.image_url)
        self.assertIsNone(data.link_url)

    def test_valid_urls_kept_verbatim(self):
        data = validate_post(
            {
                "title": "Fries",
                "image_url": "https://cdn.example.com/fries.jpg",
                "link_url": "https://example.com",
            }
        )
        self.assertEqual(data.image_url, "https://cdn.example.com/fries.jpg")
        self.assertEqual(data.link_url, "https://example.com")

    def test_flags_deduplicated_and_checked(self):
        data = validate_post({"title": "Fries", "flags": ["tip", "recipe", "tip"]})
        self.assertEqual(data.flags, ["tip", "recipe"])
        self.assertRejected(
            {"title": "Fries", "flags": ["spam"]}, "flags", "Unknown tag: spam"
        )

    def test_errors_reported_per_field(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate_post({"title": "a", "link_url": "nope"})
        self.assertEqual(set(ctx.exception.errors), {"title", "link_url"})


class CommentValidationTests(unittest.TestCase):
    def test_comment_bounds(self):
        cases = {
            "": "Comment cannot be empty",
            "hi": "Comment must be at least 3 characters",
            "x" * 501: "Comment must be less than 500 characters",
        }
        for content, message in cases.items():
            with self.assertRaises(ValidationFailed) as ctx:
                validate_comment({"content": content})
            self.assertEqual(ctx.exception.errors["content"], message)
        self.assertEqual(validate_comment({"content": " yum "}).content, "yum")


class UrlValidationTests(unittest.TestCase):
    def test_validate_url(self):
        self.assertEqual(validate_url(" https://a.example "), "https://a.example")
        with self.assertRaises(ValidationFailed) as ctx:
            validate_url("nope", field="link_url")
        self.assertIn("link_url", ctx.exception.errors)


if __name__ == "__main__":
    unittest.main()
