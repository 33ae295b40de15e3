"""Whitespace normalisation applied to generated files."""

import re

# more than two consecutive blank lines
_BLANK_RUNS = re.compile(r"\n{4,}")


def tidy_source(text: str) -> str:
    """Strip trailing whitespace, collapse blank-line runs, end with one newline.

    Only whitespace at line ends and between lines changes; statements and
    their indentation are left exactly as rendered.
    """
    lines = [line.rstrip() for line in text.split("\n")]
    joined = "\n".join(lines).strip("\n")
    return _BLANK_RUNS.sub("\n\n\n", joined) + "\n"
