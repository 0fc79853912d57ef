import unittest

from airfryhub.flags import (
    AVAILABLE_FLAGS,
    clear_flags,
    describe_selection,
    display_flags,
    toggle_flag,
)


class FlagTests(unittest.TestCase):
    def test_catalogue_order(self):
        self.assertEqual(
            [f.value for f in AVAILABLE_FLAGS],
            ["recipe", "tip", "question", "review", "beginner"],
        )

    def test_toggle_twice_restores_selection(self):
        original = ["recipe", "tip"]
        for value in ("tip", "review"):
            once = toggle_flag(original, value)
            self.assertNotEqual(once, original)
            self.assertEqual(sorted(toggle_flag(once, value)), sorted(original))
        self.assertEqual(original, ["recipe", "tip"])

    def test_toggle_appends_and_removes(self):
        self.assertEqual(toggle_flag([], "tip"), ["tip"])
        self.assertEqual(toggle_flag(["tip", "recipe"], "tip"), ["recipe"])

    def test_clear(self):
        self.assertEqual(clear_flags(), [])
        self.assertIsNone(describe_selection(clear_flags()))

    def test_display_skips_unknown(self):
        self.assertEqual(
            [f.label for f in display_flags(["tip", "bogus", "recipe"])],
            ["Tip", "Recipe"],
        )

    def test_describe_selection(self):
        self.assertEqual(
            describe_selection(["recipe", "tip"]), "Showing posts with: Recipe, Tip"
        )


if __name__ == "__main__":
    unittest.main()
