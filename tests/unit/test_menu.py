"""Unit tests for the interactive service menu."""

import io

from unittest.mock import MagicMock

from firejail_installer.menu import INVALID, parse_selection, render_options, service_menu
from firejail_installer.services import builtin_catalog

EXIT = str(len(builtin_catalog()) + 1)


def reader(*lines):
    it = iter(lines)

    def read(prompt):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    return read


class TestHelpers:
    """Tests for render_options() and parse_selection()."""

    def test_render(self):
        """select-style numbering starts at 1."""
        assert render_options(["a", "b"]) == "1) a\n2) b"

    def test_parse(self):
        """Only in-range integers are accepted."""
        assert parse_selection("1", 3) == 0
        assert parse_selection(" 3 ", 3) == 2
        assert parse_selection("0", 3) is None
        assert parse_selection("4", 3) is None
        assert parse_selection("-1", 3) is None
        assert parse_selection("ssh", 3) is None


class TestServiceMenu:
    """Tests for service_menu()."""

    def test_launch_then_exit(self):
        """Picking an entry launches it; Exit ends the loop."""
        out = io.StringIO()
        launch = MagicMock()

        n = service_menu(builtin_catalog(), launch_fn=launch, read=reader("1", EXIT), out=out)

        assert n == 1
        assert launch.call_args.args[0].label == "22/SSH"
        text = out.getvalue()
        assert text.startswith("Select a service to run with Firejail:\n1) 22/SSH\n")
        assert f"{EXIT}) Exit" in text
        assert text.endswith("Exiting.\n")

    def test_menu_keeps_looping(self):
        """Several services can be launched in one session."""
        launch = MagicMock()
        service_menu(builtin_catalog(), launch_fn=launch, read=reader("2", "3", EXIT), out=io.StringIO())
        assert [c.args[0].label for c in launch.call_args_list] == ["53/DNS", "80/HTTP"]

    def test_invalid_input(self):
        """Out of range and non-numeric input is rejected."""
        out = io.StringIO()
        launch = MagicMock()

        service_menu(builtin_catalog(), launch_fn=launch, read=reader("99", "abc", EXIT), out=out)

        launch.assert_not_called()
        assert out.getvalue().count(INVALID) == 2

    def test_empty_line_reprints(self):
        """An empty line shows the options again."""
        out = io.StringIO()
        service_menu(builtin_catalog(), launch_fn=MagicMock(), read=reader("", EXIT), out=out)
        assert out.getvalue().count("1) 22/SSH") == 2

    def test_submenu(self):
        """Sub-menus loop until a valid pick, then return to the main menu."""
        out = io.StringIO()
        launch = MagicMock()

        n = service_menu(builtin_catalog(), launch_fn=launch, read=reader("9", "3", "2", EXIT), out=out)

        assert n == 1
        assert launch.call_args.args[0].label == "PostgreSQL"
        text = out.getvalue()
        assert "Select Database:\n1) MySQL\n2) PostgreSQL\n" in text
        assert text.count(INVALID) == 1

    def test_eof_ends_menu(self):
        """End of input behaves like Exit."""
        launch = MagicMock()
        assert service_menu(builtin_catalog(), launch_fn=launch, read=reader("10"), out=io.StringIO()) == 0
        launch.assert_not_called()

    def test_launch_error_does_not_end_menu(self):
        """OSError from a launch is shown and the menu continues."""
        out = io.StringIO()
        launch = MagicMock(side_effect=[FileNotFoundError(2, "No such file", "firejail"), None])

        n = service_menu(builtin_catalog(), launch_fn=launch, read=reader("1", "1", EXIT), out=out)

        assert n == 1
        assert "ERROR:" in out.getvalue()
