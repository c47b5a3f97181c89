from requirenav.features.definition import ResolvedLocation, SourceRange
from requirenav.utils import location_from_resolved, word_range_at_position


def test_word_range_basic():
    line1 = "hello.hallo.bot"
    line2 = "hello(bot).world.hello"
    assert word_range_at_position(line1, 8) == (6, 11)
    assert word_range_at_position(line1, 2) == (0, 5)
    assert word_range_at_position(line2, 7) == (6, 9)
    assert word_range_at_position(line2, 14) == (11, 16)


def test_word_range_at_word_end():
    assert word_range_at_position("foo.bar", 7) == (4, 7)
    assert word_range_at_position("foo(", 3) == (0, 3)


def test_word_range_dollar_and_underscore():
    assert word_range_at_position("$.each(_x)", 0) == (0, 1)
    assert word_range_at_position("$.each(_x)", 8) == (7, 9)


def test_no_word():
    assert word_range_at_position("    ", 2) is None
    assert word_range_at_position("a + b", 2) is None
    assert word_range_at_position("abc", 10) is None


def test_location_without_range():
    location = location_from_resolved(ResolvedLocation("/tmp/app/util.js"))
    assert location.uri == "file:///tmp/app/util.js"
    assert location.range.start.line == 0
    assert location.range.start.character == 0


def test_location_with_range():
    location = location_from_resolved(ResolvedLocation("/tmp/util.js", SourceRange(3, 8, 3, 14)))
    assert (location.range.start.line, location.range.start.character) == (2, 8)
    assert (location.range.end.line, location.range.end.character) == (2, 14)
