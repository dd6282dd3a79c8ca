from typing import List

# Unicode White_Space; str.isspace() also counts the \x1c-\x1f separators
WHITESPACE = (
    "\t\n\v\f\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


def _normalize(text: str) -> List[str]:
    # "\r" of CRLF endings goes away with the rest of the trailing whitespace
    lines = [line.rstrip(WHITESPACE) for line in text.split("\n")]
    # only blank lines at the end are insignificant
    while lines and not lines[-1]:
        lines.pop()
    return lines


def compare_output(expected: str, actual: str) -> bool:
    """
    Non-strict check whether two outputs are identical.

    Trailing whitespace of every line and trailing blank lines are
    ignored, blank lines in the middle and leading whitespace are not.
    """
    return _normalize(expected) == _normalize(actual)
