import pytest

from noj.judger.comparator import compare_output


@pytest.mark.parametrize(
    "expected,actual,result",
    [
        # exactly the same
        ("aaa\nbbb\n", "aaa\nbbb\n", True),
        # trailing space before new line
        ("aaa  \nbbb\n", "aaa\nbbb\n", True),
        # redundant new line at the end
        ("aaa\nbbb\n\n", "aaa\nbbb\n", True),
        # redundant new line in the middle
        ("aaa\n\nbbb\n", "aaa\nbbb\n", False),
        # leading space
        ("aaa\n bbb", "aaa\nbbb\n", False),
        ("", "", True),
        ("\n\n\n\n", "", True),
        ("\t\r\n", "", True),
        ("crlf\r\n", "crlf\n", True),
        # missing last line
        ("aaa\nbbb\n", "aaa\n", False),
        # blank lines at the start are significant
        ("\naaa\n", "aaa\n", False),
        # unit separators are not whitespace
        ("a\x1c", "a", False),
        ("a\x1f\n", "a\n", False),
        # non-breaking and ideographic spaces are
        ("a\xa0\u3000\n", "a\n", True),
    ],
)
def test_compare_output(expected: str, actual: str, result: bool) -> None:
    assert compare_output(expected, actual) is result


@pytest.mark.parametrize("text", ["", "a", "a\n\n b \t\n", "1 2 3\r\n4 5 6\r\n"])
def test_compare_output_reflexive(text: str) -> None:
    assert compare_output(text, text)


def test_compare_output_order_sensitive() -> None:
    assert not compare_output("1\n2\n", "2\n1\n")
