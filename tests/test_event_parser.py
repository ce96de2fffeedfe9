"""Tests for parsing event page text into records."""

import pytest

from realtime_results.errors import FormatError
from realtime_results.event_parser import (
    TokenKind,
    classify_token,
    is_column_header,
    is_section_marker,
    parse_event,
    parse_race_info,
    parse_relay_legs,
    time_columns,
)
from realtime_results.models import Course

SIMPLE_EVENT = [
    "Event 1  Women 200 Yard Freestyle",
    "===============================================================================",
    "     Name                 Team        Seed Time  Finals Time  Points",
    "===============================================================================",
    "1    Smith, Jane          TeamA       1:58.33    1:55.10     9",
    "--   Doe, John            TeamB       NT          DQ",
]


class TestTokenClassifier:
    @pytest.mark.parametrize(
        "token,kind",
        [
            ("1:58.33", TokenKind.TIME),
            ("21.09", TokenKind.TIME),
            ("x1:58.33", TokenKind.TIME),
            ("4:02.31N", TokenKind.TIME),
            ("NT", TokenKind.STATUS),
            ("DQ", TokenKind.STATUS),
            ("SCR", TokenKind.STATUS),
            ("DFS", TokenKind.STATUS),
            ("1", TokenKind.PLACE),
            ("12.", TokenKind.PLACE),
            ("*5", TokenKind.PLACE),
            ("Smith,", TokenKind.NAME),
            ("(23.53)", TokenKind.UNKNOWN),
        ],
    )
    def test_classify(self, token, kind):
        assert classify_token(token) == kind

    def test_column_header(self):
        assert is_column_header("Name  Yr School  Prelims  Finals Points")
        assert is_column_header("Team  Relay  Seed Time  Finals Time Points")
        assert not is_column_header("NCAA: N 4:02.31  3/23/2022 Leon Marchand")

    def test_section_markers(self):
        assert is_section_marker("Heat 3 of 5")
        assert is_section_marker("A - Final")
        assert is_section_marker("Preliminaries")
        assert not is_section_marker("1 Marchand, Leon  JR Arizona St  4:07.52  4:02.31N  20")


class TestSpecExamples:
    def test_individual_row(self):
        parsed = parse_event(SIMPLE_EVENT)
        first = parsed.records[0]
        assert first.place == 1
        assert first.name == "Smith, Jane"
        assert first.team == "TeamA"
        assert first.seed_time == "1:58.33"
        assert first.finals_time == "1:55.10"
        assert first.points == 9

    def test_status_row_without_place(self):
        parsed = parse_event(SIMPLE_EVENT)
        second = parsed.records[1]
        assert second.place is None
        assert second.name == "Doe, John"
        assert second.team == "TeamB"
        assert second.seed_time == "NT"
        assert second.finals_time == "DQ"
        assert second.points is None

    def test_idempotent(self):
        assert parse_event(SIMPLE_EVENT) == parse_event(list(SIMPLE_EVENT))

    def test_event_name_collapsed(self):
        assert parse_event(SIMPLE_EVENT).metadata.name == "Event 1 Women 200 Yard Freestyle"

    def test_row_without_times(self):
        lines = SIMPLE_EVENT + ["--   Scratch, Sam         TeamC"]
        record = parse_event(lines).records[-1]
        assert record.name == "Scratch, Sam"
        assert record.team == "TeamC"
        assert record.seed_time is None
        assert record.finals_time is None

    def test_unclassified_line_is_skipped(self):
        lines = SIMPLE_EVENT[:4] + ["Team scores will be posted later"] + SIMPLE_EVENT[4:]
        parsed = parse_event(lines)
        assert len(parsed.records) == 2
        assert parsed.skipped_lines == ("Team scores will be posted later",)


class TestIndividualEvent:
    @pytest.fixture
    def parsed(self, page_lines):
        return parse_event(
            page_lines("individual_finals.htm"),
            source_url="https://results.example.com/meet/240327F003.htm",
        )

    def test_metadata(self, parsed):
        meta = parsed.metadata
        assert meta.name == "Event 3 Men 500 Yard Freestyle"
        assert meta.course == Course.SCY
        assert meta.date_time == "10:47 AM 3/28/2024"
        assert meta.event_number == 3
        assert meta.gender == "Men"
        assert meta.distance == 500
        assert meta.stroke == "Freestyle"
        assert meta.is_relay is False
        assert meta.session == "Finals"
        assert meta.meet_name.startswith("2024 NCAA Division I Men's Championships")
        assert meta.venue == "Indiana University Natatorium"
        assert len(meta.records) == 2
        assert meta.records[0].startswith("NCAA: N 4:02.31")

    def test_record_count(self, parsed):
        assert len(parsed.records) == 6
        assert parsed.skipped_lines == ()

    def test_places_increase(self, parsed):
        places = [r.place for r in parsed.records if r.place is not None]
        assert places == [1, 2, 3, 9]
        assert len(set(places)) == len(places)

    def test_year_and_school(self, parsed):
        winner = parsed.records[0]
        assert winner.name == "Marchand, Leon"
        assert winner.year == "JR"
        assert winner.team == "Arizona St"
        assert winner.finals_time == "4:02.31N"
        assert winner.points == 20

    def test_splits_span_lines(self, parsed):
        winner = parsed.records[0]
        assert winner.reaction_time == "r:+0.62"
        assert winner.splits[0] == "21.09"
        assert winner.splits[-1] == "4:02.31"
        assert len(winner.splits) == 10
        assert "23.53" not in winner.splits

    def test_entity_decoded(self, parsed):
        assert parsed.records[2].name == "O'Brien, Tom"

    def test_dq_reason(self, parsed):
        dq = parsed.records[4]
        assert dq.place is None
        assert dq.seed_time == "4:12.50"
        assert dq.finals_time == "DQ"
        assert dq.dq_reason == "Early take-off swimmer #2"
        assert dq.splits == ()

    def test_scratch(self, parsed):
        scratch = parsed.records[5]
        assert scratch.name == "Lee, Sam"
        assert scratch.finals_time == "SCR"
        assert scratch.points is None


class TestRelayEvent:
    @pytest.fixture
    def parsed(self, page_lines):
        return parse_event(page_lines("relay_finals.htm"))

    def test_relay_layout(self, parsed):
        assert parsed.metadata.is_relay
        assert parsed.metadata.stroke == "Medley"
        assert len(parsed.records) == 3

    def test_team_names(self, parsed):
        first, second, third = parsed.records
        assert (first.name, first.team) == ("Florida A", "Florida")
        assert (second.name, second.team) == ("Arizona State A", "Arizona State")
        assert third.place is None
        assert third.finals_time == "DQ"

    def test_leg_splits_differ_from_final_time(self, parsed):
        first = parsed.records[0]
        assert first.seed_time == "1:21.66"
        assert first.finals_time == "1:20.15N"
        assert first.splits == ("20.01", "44.23", "1:03.30", "1:20.15")
        assert set(first.splits) - {first.seed_time, first.finals_time}

    def test_relay_swimmers(self, parsed):
        swimmers = parsed.records[0].relay_swimmers
        assert [s.leg for s in swimmers] == [1, 2, 3, 4]
        assert swimmers[0].name == "Chaney, Adam"
        assert swimmers[0].year == "SR"
        assert swimmers[0].reaction_time is None
        assert swimmers[1].name == "Smith, Julian"
        assert swimmers[1].reaction_time == "r:0.18"

    def test_dq_relay_reason(self, parsed):
        dq = parsed.records[2]
        assert dq.dq_reason == "Early take-off swimmer #2"
        assert dq.relay_swimmers[1].reaction_time == "r:-0.04"


class TestClubPrelims:
    @pytest.fixture
    def parsed(self, page_lines):
        return parse_event(page_lines("club_prelims.htm"))

    def test_metadata(self, parsed):
        meta = parsed.metadata
        assert meta.course == Course.LCM
        assert meta.gender == "Girls"
        assert meta.distance == 100
        assert meta.stroke == "Backstroke"
        assert meta.meet_name == "Summer Champs 2024 - 7/12/2024 to 7/14/2024"
        assert meta.venue is None
        assert meta.date_time == "7:02 PM 7/14/2024"

    def test_session_from_section_marker(self, parsed):
        assert parsed.metadata.session == "Prelims"

    def test_heats_do_not_end_parsing(self, parsed):
        assert [r.place for r in parsed.records] == [1, 2, 3, None]

    def test_age_and_team(self, parsed):
        first = parsed.records[0]
        assert first.year == "14"
        assert first.team == "Aquatic Club-PC"
        assert first.points is None
        assert first.splits == ("33.10", "1:07.21")

    def test_exhibition_time_verbatim(self, parsed):
        assert parsed.records[1].finals_time == "x1:08.00"

    def test_no_time_seed(self, parsed):
        assert parsed.records[2].seed_time == "NT"
        assert parsed.records[3].finals_time == "NS"


class TestPageLevelBehaviour:
    def test_cancelled_event_has_no_records(self, page_lines):
        parsed = parse_event(page_lines("cancelled.htm"))
        assert parsed.metadata.name == "Event 21 Men 1650 Yard Freestyle"
        assert parsed.records == ()

    def test_multiple_events_fail_closed(self, page_lines):
        with pytest.raises(FormatError, match="multi-event"):
            parse_event(page_lines("multi_event.htm"))

    def test_no_headline(self):
        with pytest.raises(FormatError):
            parse_event(["About this meet", "Sponsored by the boosters"])

    def test_empty_text(self):
        with pytest.raises(FormatError):
            parse_event([])


class TestHelpers:
    def test_race_info_long_course(self):
        info = parse_race_info("Event 5 Boys 11-12 200 LC Meter IM")
        assert info["event_number"] == 5
        assert info["distance"] == 200
        assert info["course"] == Course.LCM
        assert info["stroke"] == "IM"

    def test_race_info_short_course_meters(self):
        assert parse_race_info("Event 9 Women 100 SC Meter Butterfly")["course"] == Course.SCM

    def test_relay_legs_with_ages(self):
        legs = parse_relay_legs("3) r:0.41 Van Brunt, Gaby 20        4) r:0.04 Parker, Sarah 18")
        assert [(s.leg, s.name, s.year) for s in legs] == [
            (3, "Van Brunt, Gaby", "20"),
            (4, "Parker, Sarah", "18"),
        ]


class TestAccentedNames:
    ROWS = [
        "1    Smith, Jane          TeamA       1:58.33    1:55.10     9",
        "2    Álvarez, Sofía       TeamB       1:59.00    1:56.20     7",
        "3    Öberg, Anna          TeamC       2:00.00    1:57.30     6",
    ]

    def test_every_row_kept(self):
        parsed = parse_event(SIMPLE_EVENT[:4] + self.ROWS)
        assert [r.name for r in parsed.records] == ["Smith, Jane", "Álvarez, Sofía", "Öberg, Anna"]
        assert parsed.skipped_lines == ()

    def test_times_stay_with_their_swimmer(self):
        first, second, third = parse_event(SIMPLE_EVENT[:4] + self.ROWS).records
        assert first.splits == ()
        assert (second.seed_time, second.finals_time, second.points) == ("1:59.00", "1:56.20", 7)
        assert third.finals_time == "1:57.30"

    def test_accented_name_token(self):
        assert classify_token("Öberg,") == TokenKind.NAME


class TestTeamCodesNextToTimes:
    def test_status_like_team_code_is_not_a_seed(self):
        lines = SIMPLE_EVENT[:4] + ["1    Smith, Jane          NS          59.00"]
        record = parse_event(lines).records[0]
        assert record.team == "NS"
        assert record.seed_time is None
        assert record.finals_time == "59.00"

    def test_no_time_seed_still_read(self):
        record = parse_event(SIMPLE_EVENT).records[1]
        assert record.seed_time == "NT"

    def test_single_time_column(self):
        lines = [
            "Event 7  Women 50 SC Meter Freestyle",
            "    Name                    Age Team                 Finals Time",
            "  1 Ng, Amy                  14 NT                       29.10",
        ]
        record = parse_event(lines).records[0]
        assert record.year == "14"
        assert record.team == "NT"
        assert record.seed_time is None
        assert record.finals_time == "29.10"

    @pytest.mark.parametrize(
        "header,count",
        [
            ("Name  Yr School  Prelims  Finals Points", 2),
            ("Team  Relay  Seed Time  Finals Time Points", 2),
            ("Name  Age Team  Finals Time", 1),
        ],
    )
    def test_time_columns(self, header, count):
        assert time_columns(header) == count
