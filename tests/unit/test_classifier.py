"""Unit tests for today/upcoming classification."""

from datetime import date, datetime, timezone

import pytest

from eventcal.calendar.expander import build_occurrence
from eventcal.domain.classifier import classify, filter_not_ended

pytestmark = pytest.mark.unit


class TestClassify:
    """Tests for classify."""

    @pytest.mark.critical_path
    def test_today_follows_business_timezone_not_utc(self, make_event, business_timezone, frozen_now):
        late_show = build_occurrence(make_event("late", start=(2026, 3, 1, 23, 0)), date(2026, 3, 1))
        tomorrow = build_occurrence(make_event("next", start=(2026, 3, 2, 18, 0)), date(2026, 3, 2))

        result = classify([tomorrow, late_show], frozen_now, business_timezone)

        assert result.business_date == date(2026, 3, 1)
        assert [occ.event_id for occ in result.today] == ["late"]
        assert [occ.event_id for occ in result.upcoming] == ["next"]

    def test_utc_business_zone_sees_next_day(self, make_event, frozen_now):
        late_show = build_occurrence(make_event("late", start=(2026, 3, 1, 23, 0)), date(2026, 3, 1))
        tomorrow = build_occurrence(make_event("next", start=(2026, 3, 2, 18, 0)), date(2026, 3, 2))

        result = classify([late_show, tomorrow], frozen_now, "UTC")

        assert result.business_date == date(2026, 3, 2)
        assert [occ.event_id for occ in result.today] == ["next"]
        assert result.upcoming == []

    def test_past_days_are_dropped(self, make_event, business_timezone, frozen_now):
        yesterday = build_occurrence(make_event("old", start=(2026, 2, 28, 18, 0)), date(2026, 2, 28))

        result = classify([yesterday], frozen_now, business_timezone)

        assert result.today == []
        assert result.upcoming == []

    def test_ended_occurrences_stay_in_today(self, make_event, business_timezone, frozen_now):
        lunch = build_occurrence(
            make_event("lunch", start=(2026, 3, 1, 11, 0), end=(2026, 3, 1, 13, 0)), date(2026, 3, 1)
        )

        result = classify([lunch], frozen_now, business_timezone)

        assert [occ.event_id for occ in result.today] == ["lunch"]

    def test_lists_are_sorted_by_start_then_id(self, make_event, business_timezone, frozen_now):
        b = build_occurrence(make_event("b", start=(2026, 3, 3, 18, 0)), date(2026, 3, 3))
        a = build_occurrence(make_event("a", start=(2026, 3, 3, 18, 0)), date(2026, 3, 3))
        early = build_occurrence(make_event("z", start=(2026, 3, 2, 9, 0)), date(2026, 3, 2))

        result = classify([b, a, early], frozen_now, business_timezone)

        assert [occ.event_id for occ in result.upcoming] == ["z", "a", "b"]

    def test_naive_now_is_taken_as_utc(self, make_event, business_timezone):
        late_show = build_occurrence(make_event("late", start=(2026, 3, 1, 23, 0)), date(2026, 3, 1))

        result = classify([late_show], datetime(2026, 3, 2, 6, 30), business_timezone)

        assert [occ.event_id for occ in result.today] == ["late"]


class TestFilterNotEnded:
    """Tests for filter_not_ended."""

    def test_drops_finished_and_keeps_running(self, make_event, frozen_now):
        finished = build_occurrence(
            make_event("finished", start=(2026, 3, 1, 11, 0), end=(2026, 3, 1, 13, 0)), date(2026, 3, 1)
        )
        running = build_occurrence(
            make_event("running", start=(2026, 3, 1, 23, 0), end=(2026, 3, 2, 1, 0)), date(2026, 3, 1)
        )

        kept = filter_not_ended([finished, running], frozen_now)

        assert [occ.event_id for occ in kept] == ["running"]

    def test_open_ended_dropped_once_started(self, make_event, frozen_now):
        started = build_occurrence(make_event("started", start=(2026, 3, 1, 23, 0)), date(2026, 3, 1))
        later = build_occurrence(make_event("later", start=(2026, 3, 1, 23, 45)), date(2026, 3, 1))

        kept = filter_not_ended([started, later], frozen_now)

        assert [occ.event_id for occ in kept] == ["later"]

    def test_all_day_today_is_kept_until_midnight(self, make_event):
        all_day = build_occurrence(make_event("fest", start=(2026, 3, 1, 0, 0), is_all_day=True), date(2026, 3, 1))

        assert filter_not_ended([all_day], datetime(2026, 3, 2, 6, 59, tzinfo=timezone.utc)) == [all_day]
        assert filter_not_ended([all_day], datetime(2026, 3, 2, 7, 1, tzinfo=timezone.utc)) == []
