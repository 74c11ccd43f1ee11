from __future__ import annotations
import argparse
import os
import shutil
import sys

_TERM_WIDTH = shutil.get_terminal_size((100, 20)).columns


class EnhancedHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """
    Help formatter with wider output and bold section headings on a TTY.
    Keeps the epilog's line breaks so the examples list stays readable.
    """

    _ANSI_RESET = "\033[0m"
    _ANSI_BOLD = "\033[1m"

    def __init__(self, prog: str) -> None:
        # 32 aligns help text nicely for the longest option strings.
        super().__init__(prog, max_help_position=32, width=_TERM_WIDTH)

    @staticmethod
    def _supports_color() -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        return sys.stdout.isatty()

    def start_section(self, heading) -> None:
        if heading and self._supports_color():
            heading = f"{self._ANSI_BOLD}{heading}{self._ANSI_RESET}"
        super().start_section(heading)


class CustomArgumentParser(argparse.ArgumentParser):
    """
    ArgumentParser that prints the usage line before reporting an error,
    then exits with status 2.
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("formatter_class", EnhancedHelpFormatter)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(2, f"Error: {message}\n")
