import logging

import pytest

from asciishade.config import Settings
from asciishade.errors import InvalidArgument, PreconditionViolated
from asciishade.pixels import PixelGrid
from asciishade.session import ERR_ADD_FORMAT, Session, parse_char_spec

INK = {chr(code): (code * 7) % 17 for code in range(32, 127)}


@pytest.fixture
def session(make_rasterizer):
    return Session("0123456789", rasterizer=make_rasterizer(INK))


def assert_consistent(session):
    assert session.matcher.characters() == session.active_characters()


@pytest.mark.parametrize(
    "spec, expected",
    [
        ("a", ["a"]),
        ("space", [" "]),
        ("a-c", ["a", "b", "c"]),
        ("c-a", ["a", "b", "c"]),
        ("-", ["-"]),
    ],
)
def test_parse_char_spec(spec, expected):
    assert parse_char_spec(spec, ERR_ADD_FORMAT) == expected


def test_parse_all():
    chars = parse_char_spec("all", ERR_ADD_FORMAT)
    assert len(chars) == 95
    assert chars[0] == " " and chars[-1] == "~"


@pytest.mark.parametrize("spec", ["ab", "a-", "a-bc", "é", "a-é", ""])
def test_parse_rejects_malformed(spec):
    with pytest.raises(InvalidArgument, match="Did not add"):
        parse_char_spec(spec, ERR_ADD_FORMAT)


def test_default_charset(session):
    assert session.active_characters() == list("0123456789")
    assert_consistent(session)


def test_add_and_remove_keep_matcher_in_step(session):
    session.add("a-e")
    session.add("space")
    session.remove("2-7")
    session.add("c")
    assert session.active_characters() == list(" 0189abcde")
    assert_consistent(session)

    session.remove("all")
    assert session.active_characters() == []
    assert len(session.matcher) == 0
    session.add("all")
    assert len(session.active_characters()) == 95
    assert_consistent(session)


def test_malformed_add_changes_nothing(session):
    with pytest.raises(InvalidArgument, match="Did not add"):
        session.add("xyz")
    with pytest.raises(InvalidArgument, match="Did not remove"):
        session.remove("0-")
    assert session.active_characters() == list("0123456789")


def test_resolution_bounds(session):
    grid = PixelGrid.filled(8, 4)
    assert session.resolution == 2
    assert session.resolution_up(grid) == 4
    assert session.resolution_up(grid) == 8
    with pytest.raises(PreconditionViolated, match="exceeding boundaries"):
        session.resolution_up(grid)
    assert session.resolution == 8
    assert session.resolution_down(grid) == 4
    assert session.resolution_down(grid) == 2
    with pytest.raises(PreconditionViolated, match="exceeding boundaries"):
        session.resolution_down(grid)
    assert session.resolution == 2


def test_rounding_and_output(session):
    session.set_rounding("down")
    assert session.settings.rounding == "down"
    assert session.matcher.rounding_policy.value == "down"
    with pytest.raises(InvalidArgument, match="rounding method"):
        session.set_rounding("DOWN")

    session.set_output("html")
    assert session.output == "html"
    with pytest.raises(InvalidArgument, match="output method"):
        session.set_output("pdf")
    assert session.output == "html"


def test_run_needs_two_characters(make_rasterizer):
    session = Session(" @", rasterizer=make_rasterizer({" ": 0, "@": 16}))
    grid = PixelGrid.filled(4, 4, (255, 255, 255))
    assert session.run(grid) == ["@@", "@@"]
    session.remove("@")
    with pytest.raises(PreconditionViolated, match="too small"):
        session.run(grid)


def test_pad_toggle(make_rasterizer):
    session = Session(" @", rasterizer=make_rasterizer({" ": 0, "@": 16}), settings=Settings(resolution=4))
    grid = PixelGrid.filled(3, 3, (0, 0, 0))
    with pytest.raises(PreconditionViolated):
        session.run(grid)
    session.set_pad(True)
    assert session.settings.sample_padded
    assert session.run(grid)[-1] == "@@@@"


def test_settings_rounding_applied(make_rasterizer):
    session = Session("az", rasterizer=make_rasterizer({"a": 4, "z": 12}), settings=Settings(rounding="up"))
    assert session.matcher.rounding_policy.value == "up"


def test_resolution_change_must_divide_sampled_width(make_rasterizer):
    session = Session(" @", rasterizer=make_rasterizer({" ": 0, "@": 16}))
    grid = PixelGrid.filled(301, 200, (255, 255, 255))
    with pytest.raises(PreconditionViolated, match="does not evenly divide the image width of 301 pixels"):
        session.resolution_up(grid)
    assert session.resolution == 2
    assert session.resolution_down(grid) == 1

    session.set_pad(True)
    assert session.resolution_up(grid) == 2
    assert session.resolution_up(grid) == 4
    assert session.run(grid) == ["@@@@"] * 2


def test_settings_hash_tracks_fields():
    base = Settings()
    assert base.hash() == Settings().hash()
    assert len(base.hash()) == 12
    assert base.with_changes(resolution=4).hash() != base.hash()
    assert base.with_changes(sample_padded=True).hash() != base.hash()
    assert base.with_changes(resolution=4).with_changes(resolution=2).hash() == base.hash()


def test_run_logs_settings_hash(make_rasterizer, caplog):
    session = Session(" @", rasterizer=make_rasterizer({" ": 0, "@": 16}))
    with caplog.at_level(logging.DEBUG, logger="asciishade"):
        session.run(PixelGrid.filled(4, 4))
    assert session.settings.hash() in caplog.text
