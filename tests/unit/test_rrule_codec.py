"""Unit tests for the stored RRULE string and exception list codec."""

import json
from datetime import date

import pytest

from eventcal.calendar.recurrence import (
    MonthlyRecurrence,
    NoRecurrence,
    RecurrenceRule,
    Weekday,
    WeeklyRecurrence,
)
from eventcal.calendar.rrule_codec import (
    dump_exception_dates,
    parse_exception_dates,
    parse_rrule_string,
    to_rrule_string,
)
from eventcal.exceptions import InvalidRecurrenceRule

pytestmark = pytest.mark.unit


class TestToRruleString:
    """Tests for encoding rules."""

    def test_one_time_is_empty(self):
        assert to_rrule_string(RecurrenceRule.none()) == ""

    def test_weekly_lists_days_in_week_order(self):
        rule = RecurrenceRule.weekly(["FR", "MO", "WE"])

        assert to_rrule_string(rule) == "FREQ=WEEKLY;BYDAY=MO,WE,FR"

    def test_monthly(self):
        assert to_rrule_string(RecurrenceRule.monthly(15)) == "FREQ=MONTHLY;BYMONTHDAY=15"

    def test_until_is_written_at_end_of_day(self):
        rule = RecurrenceRule.weekly(["WE"], until_date=date(2026, 3, 31))

        assert to_rrule_string(rule) == "FREQ=WEEKLY;BYDAY=WE;UNTIL=20260331T235959Z"

    def test_exceptions_are_not_part_of_the_string(self):
        rule = RecurrenceRule.monthly(1, exception_dates=[date(2026, 5, 1)])

        assert to_rrule_string(rule) == "FREQ=MONTHLY;BYMONTHDAY=1"


class TestParseRruleString:
    """Tests for decoding stored rules."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_one_time(self, value):
        assert parse_rrule_string(value).pattern == NoRecurrence()

    def test_weekly_with_until(self):
        rule = parse_rrule_string("FREQ=WEEKLY;BYDAY=MO,WE;UNTIL=20260331T235959Z")

        assert rule.pattern == WeeklyRecurrence(frozenset({Weekday.MO, Weekday.WE}))
        assert rule.until_date == date(2026, 3, 31)

    def test_date_only_until(self):
        rule = parse_rrule_string("FREQ=MONTHLY;BYMONTHDAY=15;UNTIL=20261231")

        assert rule.until_date == date(2026, 12, 31)

    def test_rrule_prefix_and_case_are_tolerated(self):
        rule = parse_rrule_string("RRULE:freq=weekly;byday=tu")

        assert rule.pattern == WeeklyRecurrence(frozenset({Weekday.TU}))

    def test_weekly_without_byday_uses_start_weekday(self):
        rule = parse_rrule_string("FREQ=WEEKLY", start_date=date(2026, 1, 7))

        assert rule.pattern == WeeklyRecurrence(frozenset({Weekday.WE}))

    def test_monthly_without_bymonthday_uses_start_day(self):
        rule = parse_rrule_string("FREQ=MONTHLY", start_date=date(2026, 1, 31))

        assert rule.pattern == MonthlyRecurrence(31)

    def test_last_day_of_month_maps_to_clamped_31(self):
        assert parse_rrule_string("FREQ=MONTHLY;BYMONTHDAY=-1").pattern == MonthlyRecurrence(31)

    def test_interval_one_is_accepted(self):
        rule = parse_rrule_string("FREQ=WEEKLY;INTERVAL=1;BYDAY=SA")

        assert rule.pattern == WeeklyRecurrence(frozenset({Weekday.SA}))

    def test_exceptions_json_is_applied(self):
        rule = parse_rrule_string("FREQ=WEEKLY;BYDAY=MO", '["2026-02-16", "2026-02-23"]')

        assert rule.exception_dates == frozenset({date(2026, 2, 16), date(2026, 2, 23)})

    def test_exceptions_apply_to_one_time_events(self):
        rule = parse_rrule_string("", '["2026-02-16"]')

        assert rule.exception_dates == frozenset({date(2026, 2, 16)})

    @pytest.mark.parametrize(
        ("text", "field"),
        [
            ("BYDAY=MO", "frequency"),
            ("FREQ=DAILY", "frequency"),
            ("FREQ=YEARLY", "frequency"),
            ("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO", "recurrence_rule"),
            ("FREQ=WEEKLY;BYDAY=MO;COUNT=5", "recurrence_rule"),
            ("FREQ=MONTHLY;BYDAY=1MO", "recurrence_rule"),
            ("FREQ=WEEKLY;BYDAY", "recurrence_rule"),
            ("FREQ=WEEKLY;BYDAY=XX", "weekdays"),
            ("FREQ=MONTHLY;BYMONTHDAY=abc", "day_of_month"),
            ("FREQ=MONTHLY;BYMONTHDAY=32", "day_of_month"),
            ("FREQ=WEEKLY;BYDAY=MO;UNTIL=2026-03-31", "until"),
            ("FREQ=WEEKLY;BYDAY=MO;UNTIL=20260231", "until"),
            ("FREQ=WEEKLY", "weekdays"),
            ("FREQ=MONTHLY", "day_of_month"),
        ],
    )
    def test_invalid_strings_raise(self, text, field):
        with pytest.raises(InvalidRecurrenceRule) as exc_info:
            parse_rrule_string(text)

        assert exc_info.value.field == field

    def test_until_before_start_raises(self):
        with pytest.raises(InvalidRecurrenceRule) as exc_info:
            parse_rrule_string("FREQ=WEEKLY;BYDAY=MO;UNTIL=20260101", start_date=date(2026, 1, 5))

        assert exc_info.value.field == "until"

    def test_encoded_rule_reads_back(self):
        rule = RecurrenceRule.weekly(
            ["TH", "SA"], until_date=date(2026, 6, 30), exception_dates=[date(2026, 6, 4)]
        )

        decoded = parse_rrule_string(
            to_rrule_string(rule), dump_exception_dates(rule.exception_dates)
        )

        assert decoded == rule


class TestExceptionDates:
    """Tests for the JSON exception list."""

    def test_dump_is_sorted_and_deduplicated(self):
        dumped = dump_exception_dates([date(2026, 3, 1), date(2026, 1, 1), date(2026, 3, 1)])

        assert json.loads(dumped) == ["2026-01-01", "2026-03-01"]

    def test_dump_empty(self):
        assert dump_exception_dates([]) == "[]"

    @pytest.mark.parametrize("value", [None, "", "[]"])
    def test_parse_empty(self, value):
        assert parse_exception_dates(value) == frozenset()

    @pytest.mark.parametrize("value", ["not json", '{"date": "2026-01-01"}', '["2026-13-01"]', "[20260101]"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(InvalidRecurrenceRule) as exc_info:
            parse_exception_dates(value)

        assert exc_info.value.field == "exception_dates"
