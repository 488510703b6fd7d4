import pytest

from decafc.common import (
    DecafType,
    doubly_escape_string,
    escape_string,
)


def test_type_names_are_lowercase_names():
    assert str(DecafType(DecafType.INT.value)) == "int"
    assert str(DecafType(DecafType.BOOL.value)) == "bool"
    for member in DecafType:
        assert str(DecafType(member.value)) == member.name.lower()


def test_type_names_are_distinct():
    names = [str(DecafType(t.value)) for t in DecafType]
    assert len(set(names)) == len(names) == 5


@pytest.mark.parametrize("text", ["", "hello", "abc 123 !?", "x=y+z;"])
def test_plain_text_is_unchanged(text):
    assert escape_string(text) == text


def test_newline_is_escaped():
    assert escape_string("a\nb") == "a\\nb"


def test_escape_has_no_raw_control_characters():
    result = escape_string('line1\nline2\t"quoted"\\')
    assert "\n" not in result
    assert "\t" not in result
    assert result.count('\\"') == 2


def test_escape_grows_by_one_per_special_char():
    text = '\n\t"\\'
    assert len(escape_string(text)) == 2 * len(text)


def test_doubly_escape_is_escape_applied_twice():
    text = 'say "hi"\n'
    assert doubly_escape_string(text) == escape_string(escape_string(text))


def test_doubly_escape_plain_text_unchanged():
    assert doubly_escape_string("plain") == "plain"


def test_doubly_escape_newline_has_two_backslashes():
    assert doubly_escape_string("\n") == "\\\\n"