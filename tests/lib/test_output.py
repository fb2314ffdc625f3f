import logging
import os
import unittest
import unittest.mock

from optimizectl.lib._util.ansi import color, supports_color, yes_no
from optimizectl.lib._util.logging_utils import configure_logging, verbosity_level


class AnsiTests(unittest.TestCase):
    def test_no_color_wins(self) -> None:
        with unittest.mock.patch.dict(os.environ, {"NO_COLOR": "", "FORCE_COLOR": "1"}):
            self.assertFalse(supports_color())

    def test_force_color(self) -> None:
        with unittest.mock.patch.dict(os.environ, {"FORCE_COLOR": "1"}, clear=True):
            self.assertTrue(supports_color())
        with (
            unittest.mock.patch.dict(os.environ, {"FORCE_COLOR": "0"}, clear=True),
            unittest.mock.patch("sys.stdout.isatty", return_value=False),
        ):
            self.assertFalse(supports_color())

    def test_color_helpers(self) -> None:
        self.assertEqual(color("x", "32", False), "x")
        self.assertEqual(color("x", "32", True), "\x1b[32mx\x1b[0m")
        self.assertEqual(yes_no(True, False), "yes")
        self.assertEqual(yes_no(False, False), "no")


class LoggingTests(unittest.TestCase):
    def test_verbosity_level(self) -> None:
        self.assertEqual(verbosity_level(0), logging.WARNING)
        self.assertEqual(verbosity_level(1), logging.INFO)
        self.assertEqual(verbosity_level(3), logging.DEBUG)

    def test_configure_logging_installs_one_handler(self) -> None:
        logger = logging.getLogger("optimizectl")
        saved = (logger.level, list(logger.handlers))
        self.addCleanup(lambda: (logger.setLevel(saved[0]), setattr(logger, "handlers", saved[1])))

        configure_logging(2)
        configure_logging(1)
        marked = [h for h in logger.handlers if getattr(h, "_optimizectl", False)]
        self.assertEqual(len(marked), 1)
        self.assertEqual(logger.level, logging.INFO)
