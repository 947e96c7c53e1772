import json

import pytest

from romasub.errors import TimedTextError
from romasub.models.transcript import Segment
from romasub.parsers.merge import merge_short
from romasub.parsers.timedtext import parse_json3
from romasub.parsers.webvtt import looks_like_vtt, parse_cues, parse_vtt


def test_two_cue_sample():
    vtt = (
        "WEBVTT\n\n"
        "00:00:01.000 --> 00:00:02.000\nA\n\n"
        "00:00:02.100 --> 00:00:03.000\nB\n"
    )
    segments = parse_cues(vtt)
    assert [(s.start, s.end, s.text) for s in segments] == [(1.0, 2.0, "A"), (2.1, 3.0, "B")]


def test_cues_normalize_comma_decimals_optional_hours_and_tags():
    srt = (
        "1\r\n00:01,000 --> 00:02,500\r\n<c.colorE5E5E5>Hello</c> <00:00:01.500>there\r\n\r\n"
        "2\r\n01:00:03,000 --> 01:00:04,000\r\nline one\r\nline two &amp; more\r\n"
    )
    segments = parse_cues(srt)
    assert segments[0] == Segment(start=1.0, end=2.5, text="Hello there")
    assert segments[1] == Segment(start=3603.0, end=3604.0, text="line one line two & more")


def test_zero_and_negative_duration_cues_are_widened():
    vtt = (
        "WEBVTT\n\n"
        "00:00:05.000 --> 00:00:05.000\nsame\n\n"
        "00:00:09.000 --> 00:00:08.000\nbackwards\n"
    )
    segments = parse_cues(vtt)
    assert segments[0].end == pytest.approx(5.2)
    assert segments[1].end == pytest.approx(9.2)


def test_cues_without_text_are_dropped():
    vtt = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n<c></c>\n\n00:00:03.000 --> 00:00:04.000\nkept\n"
    assert [s.text for s in parse_cues(vtt)] == ["kept"]


def test_parse_vtt_merges_micro_fragments():
    vtt = (
        "WEBVTT\n\n"
        "00:00:01.000 --> 00:00:02.000\nA\n\n"
        "00:00:02.100 --> 00:00:03.000\nB\n\n"
        "00:00:05.000 --> 00:00:06.000\nfar away\n"
    )
    segments = parse_vtt(vtt)
    assert [(s.start, s.end, s.text) for s in segments] == [(1.0, 3.0, "A B"), (5.0, 6.0, "far away")]


def test_looks_like_vtt():
    assert looks_like_vtt("WEBVTT\nKind: captions")
    assert not looks_like_vtt("<transcript></transcript>")
    assert not looks_like_vtt("")


def test_merge_rule():
    merged = merge_short([
        Segment(start=1, end=2, text="Hi"),
        Segment(start=2.1, end=2.4, text="a"),
    ])
    assert merged == [Segment(start=1, end=2.4, text="Hi a")]


def test_merge_requires_small_gap():
    segments = [
        Segment(start=1, end=2, text="Hi"),
        Segment(start=2.2, end=2.4, text="a"),
        Segment(start=3, end=4, text="b"),
    ]
    assert merge_short(segments) == segments


def test_merge_requires_a_short_text():
    segments = [
        Segment(start=1, end=2, text="Hello"),
        Segment(start=2.05, end=3, text="world"),
    ]
    assert merge_short(segments) == segments


def test_merge_checks_the_accepted_segment_and_keeps_longest_end():
    merged = merge_short([
        Segment(start=0, end=5, text="ab"),
        Segment(start=1, end=2, text="c"),
        Segment(start=2.05, end=3, text="long enough"),
    ])
    assert merged == [
        Segment(start=0, end=5, text="ab c"),
        Segment(start=2.05, end=3, text="long enough"),
    ]


def test_merge_thresholds_are_configurable():
    segments = [Segment(start=0, end=1, text="Hello"), Segment(start=1.3, end=2, text="there")]
    assert len(merge_short(segments, max_gap=0.5, min_chars=6)) == 1


def test_json3_events():
    doc = {
        "events": [
            {"tStartMs": 0, "dDurationMs": 500},
            {"tStartMs": 1000, "dDurationMs": 1500, "segs": [{"utf8": "Hello"}, {"utf8": "\n\nworld"}]},
            {"tStartMs": 3000, "dDurationMs": 1000, "segs": [{"utf8": "\n"}]},
            {"tStartMs": 4000, "segs": [{"utf8": "no duration"}]},
        ]
    }
    segments = parse_json3(json.dumps(doc))
    assert segments == [
        Segment(start=1.0, end=2.5, text="Hello world"),
        Segment(start=4.0, end=6.0, text="no duration"),
    ]


def test_json3_enforces_minimum_duration_and_merges():
    doc = {"events": [
        {"tStartMs": 1000, "dDurationMs": 1, "segs": [{"utf8": "はい"}]},
        {"tStartMs": 1050, "dDurationMs": 900, "segs": [{"utf8": "そうです"}]},
    ]}
    segments = parse_json3(doc)
    assert len(segments) == 1
    assert segments[0].start == 1.0
    assert segments[0].end == pytest.approx(1.95)
    assert segments[0].text == "はい そうです"


@pytest.mark.parametrize("content", ["not json", "{}", '{"events": []}', "[]"])
def test_json3_rejects_documents_without_events(content):
    with pytest.raises(TimedTextError):
        parse_json3(content)
