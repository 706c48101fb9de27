import shutil
import tempfile
import unittest
from pathlib import Path

from vsixpack.file_utils import (
    compile_ignore_matcher,
    expand_braces,
    normalize_posix_path,
    read_optional_text,
    url_join,
)


def matches_any(path_posix, patterns):
    return compile_ignore_matcher(patterns)(path_posix)


class TestFileUtils(unittest.TestCase):
    def test_normalize_posix_path(self):
        self.assertEqual(normalize_posix_path(r"src\\main.js"), "src/main.js")
        self.assertEqual(normalize_posix_path("a/b/c.txt"), "a/b/c.txt")
        self.assertEqual(normalize_posix_path(Path("a") / "b.txt"), "a/b.txt")

    def test_star_does_not_cross_directories(self):
        self.assertTrue(matches_any("src/a.js", ["src/*.js"]))
        self.assertFalse(matches_any("src/lib/a.js", ["src/*.js"]))
        self.assertFalse(matches_any("lib/a.todo", ["*.todo"]))

    def test_globstar_spans_zero_or_more_directories(self):
        self.assertTrue(matches_any("src/a.js", ["src/**/*.js"]))
        self.assertTrue(matches_any("src/lib/deep/a.js", ["src/**/*.js"]))
        self.assertTrue(matches_any(".git/HEAD", ["**/.git/**"]))
        self.assertTrue(matches_any("node_modules/x/.git/HEAD", ["**/.git/**"]))
        self.assertTrue(matches_any("anything/at/all", ["**"]))

    def test_dot_files_match_like_any_other_file(self):
        self.assertTrue(matches_any(".eslintrc.json", [".eslintrc*"]))
        self.assertTrue(matches_any(".DS_Store", ["**/.DS_Store"]))
        self.assertTrue(matches_any("a/b/.DS_Store", ["**/.DS_Store"]))
        self.assertTrue(matches_any(".hidden", ["*"]))

    def test_matching_is_case_sensitive(self):
        self.assertTrue(matches_any("README.md", ["README.md"]))
        self.assertFalse(matches_any("README.MD", ["README.md"]))

    def test_character_classes_and_question_mark(self):
        self.assertTrue(matches_any("a1", ["a[0-9]"]))
        self.assertFalse(matches_any("ab", ["a[0-9]"]))
        self.assertTrue(matches_any("ab", ["a[!0-9]"]))
        self.assertTrue(matches_any("a.js", ["?.js"]))
        self.assertFalse(matches_any("a/b", ["a?b"]))

    def test_expand_braces(self):
        self.assertEqual(expand_braces("*.{js,ts}"), ["*.js", "*.ts"])
        self.assertEqual(expand_braces("{a,b}/{c,d}"), ["a/c", "a/d", "b/c", "b/d"])
        self.assertEqual(expand_braces("a{b}"), ["a{b}"])
        self.assertTrue(matches_any("x.ts", ["*.{js,ts}"]))

    def test_url_join(self):
        self.assertEqual(
            url_join("https://github.com/a/b/blob/master", "images/x.png"),
            "https://github.com/a/b/blob/master/images/x.png",
        )
        self.assertEqual(url_join("https://example.com/", "/docs/"), "https://example.com/docs")
        self.assertEqual(url_join("https://github.com", "o", "r", "issues", "7"), "https://github.com/o/r/issues/7")

    def test_read_optional_text(self):
        tmpdir = Path(tempfile.mkdtemp(prefix="vsixpack_fu_"))
        try:
            self.assertIsNone(read_optional_text(tmpdir / "missing.txt"))
            (tmpdir / "present.txt").write_text("hi", encoding="utf-8")
            self.assertEqual(read_optional_text(tmpdir / "present.txt"), "hi")
            with self.assertRaises(OSError):
                read_optional_text(tmpdir)
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
