from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from sourcebuild.autotools import looks_like_autotools
from sourcebuild.events import RecordingEventSink
from sourcebuild.settings import AUTOTOOLS_MARKERS


AUTOCONF_HEADER = """#! /bin/sh
# Guess values for system-dependent variables and create Makefiles.
# Generated by GNU Autoconf 2.71 for hello 2.12.1.
"""

HANDWRITTEN_HEADER = """#!/bin/sh
# Hand written configure for a small project.
# Writes config.mk for the top-level Makefile.
"""


class LooksLikeAutotoolsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.events = RecordingEventSink()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _script(self, text: str) -> Path:
        path = self.root / "configure"
        path.write_text(text, encoding="utf-8")
        return path

    def test_autoconf_header_detected(self) -> None:
        script = self._script(AUTOCONF_HEADER + "echo configuring\n" * 50)
        self.assertTrue(looks_like_autotools(script, events=self.events))
        event = self.events.named("autotools.marker")[0]
        self.assertEqual(event.fields["marker"], "Generated by GNU Autoconf")

    def test_handwritten_script_not_detected(self) -> None:
        script = self._script(HANDWRITTEN_HEADER + "echo configuring\n" * 50)
        self.assertFalse(looks_like_autotools(script, events=self.events))
        self.assertEqual(self.events.names(), ["autotools.no-marker"])

    def test_each_marker_is_enough(self) -> None:
        for marker in AUTOTOOLS_MARKERS:
            with self.subTest(marker=marker):
                script = self._script(f"#!/bin/sh\n# {marker} something\n")
                self.assertTrue(looks_like_autotools(script))

    def test_missing_script_is_not_autotools(self) -> None:
        missing = self.root / "nope" / "configure"
        self.assertFalse(looks_like_autotools(missing, events=self.events))
        event = self.events.named("autotools.unreadable")[0]
        self.assertEqual(event.level, "warning")

    def test_directory_is_not_autotools(self) -> None:
        self.assertFalse(looks_like_autotools(self.root, events=self.events))
        self.assertEqual(len(self.events.named("autotools.unreadable")), 1)

    def test_marker_beyond_prefix_is_ignored(self) -> None:
        script = self._script("#" * 5000 + "\n# Generated by GNU Autoconf 2.71\n")
        self.assertFalse(looks_like_autotools(script))
        self.assertTrue(looks_like_autotools(script, prefix_bytes=8192))

    def test_binary_content_does_not_raise(self) -> None:
        script = self.root / "configure"
        script.write_bytes(b"\xff\xfe\x00garbage config.status: \x80\x81")
        self.assertTrue(looks_like_autotools(script))

    def test_custom_markers(self) -> None:
        script = self._script(HANDWRITTEN_HEADER)
        self.assertTrue(looks_like_autotools(script, markers=("config.mk",)))

    def test_repeated_calls_agree(self) -> None:
        script = self._script(AUTOCONF_HEADER)
        self.assertEqual(
            [looks_like_autotools(script) for _ in range(3)],
            [True, True, True],
        )


if __name__ == "__main__":
    unittest.main()
