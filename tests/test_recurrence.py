"""Unit tests for recurrence expansion."""
import pytest
from datetime import date, datetime, timedelta

from scheduler.models import EventTemplate, Occurrence
from scheduler.recurrence import (
    combine_date_and_time,
    expand,
    occurrences_for_dates,
    weekday_index,
)


def make_template(**overrides):
    """Create a weekly template with sensible defaults."""
    fields = dict(
        id='template-1',
        recurrence_type='weekly',
        venue_id='venue-1',
        default_start_time='18:00',
        default_end_time='21:00',
        recurring_days_of_week=[1, 3]
    )
    fields.update(overrides)
    return EventTemplate(**fields)


class TestCombineDateAndTime:
    """Test cases for combine_date_and_time."""

    def test_combines_hours_and_minutes(self):
        """Test a valid HH:MM string."""
        result = combine_date_and_time(date(2024, 3, 4), '18:30')
        assert result == datetime(2024, 3, 4, 18, 30)

    def test_accepts_seconds_and_drops_them(self):
        """Test HH:MM:SS as rendered by SQL time columns."""
        result = combine_date_and_time(date(2024, 3, 4), '09:05:45')
        assert result == datetime(2024, 3, 4, 9, 5)

    @pytest.mark.parametrize('time_str', [
        None, '', 'abc', '18', '18:xx', '24:00', '12:60', '1:2:3:4', '-1:00'
    ])
    def test_malformed_time_returns_none(self, time_str):
        """Test that absent or malformed times degrade to None."""
        assert combine_date_and_time(date(2024, 3, 4), time_str) is None


class TestWeekdayIndex:
    """Test cases for weekday_index."""

    def test_sunday_is_zero(self):
        assert weekday_index(date(2024, 3, 3)) == 0

    def test_saturday_is_six(self):
        assert weekday_index(date(2024, 3, 9)) == 6


class TestExpandWeekly:
    """Test cases for weekly expansion."""

    def test_monday_and_wednesday_example(self):
        """Test the Mon/Wed template over March 1-10, 2024."""
        template = make_template(default_end_time=None)

        occurrences = expand(template, date(2024, 3, 1), date(2024, 3, 10))

        assert [o.date for o in occurrences] == [
            date(2024, 3, 4), date(2024, 3, 6)
        ]
        assert occurrences[0].start_time == datetime(2024, 3, 4, 18, 0)
        assert occurrences[1].start_time == datetime(2024, 3, 6, 18, 0)
        assert all(o.end_time is None for o in occurrences)

    def test_every_matching_day_emitted_once(self):
        """Test membership both ways over a long window."""
        template = make_template(recurring_days_of_week=[0, 5, 6])
        start, end = date(2024, 1, 1), date(2024, 12, 31)

        occurrences = expand(template, start, end)
        emitted = [o.date for o in occurrences]

        expected = []
        day = start
        while day <= end:
            if weekday_index(day) in (0, 5, 6):
                expected.append(day)
            day += timedelta(days=1)

        assert emitted == expected
        assert len(set(emitted)) == len(emitted)

    def test_single_day_window_matching(self):
        """Test a one-day window on a matching weekday."""
        occurrences = expand(make_template(), date(2024, 3, 4), date(2024, 3, 4))

        assert len(occurrences) == 1
        assert occurrences[0].date == date(2024, 3, 4)

    def test_single_day_window_not_matching(self):
        """Test a one-day window on a non-matching weekday."""
        assert expand(make_template(), date(2024, 3, 5), date(2024, 3, 5)) == []

    def test_no_days_of_week(self):
        """Test that an empty day set produces nothing."""
        template = make_template(recurring_days_of_week=[])
        assert expand(template, date(2024, 3, 1), date(2024, 3, 31)) == []

    def test_end_time_combined(self):
        """Test that the end time is combined with each date."""
        occurrences = expand(make_template(), date(2024, 3, 4), date(2024, 3, 4))
        assert occurrences[0].end_time == datetime(2024, 3, 4, 21, 0)

    def test_datetime_range_normalized_to_days(self):
        """Test that datetime bounds are treated as whole days."""
        occurrences = expand(
            make_template(),
            datetime(2024, 3, 4, 23, 0),
            datetime(2024, 3, 6, 0, 30)
        )
        assert [o.date for o in occurrences] == [
            date(2024, 3, 4), date(2024, 3, 6)
        ]


class TestExpandMonthly:
    """Test cases for monthly expansion."""

    def test_clamps_to_last_day_of_month(self):
        """Test day 31 over January to March of a leap year."""
        template = make_template(recurrence_type='monthly', day_of_month=31)

        occurrences = expand(template, date(2024, 1, 1), date(2024, 3, 31))

        assert [o.date for o in occurrences] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)
        ]

    def test_clamps_to_february_28_in_non_leap_year(self):
        """Test day 31 against February 2023."""
        template = make_template(recurrence_type='monthly', day_of_month=31)

        occurrences = expand(template, date(2023, 2, 1), date(2023, 2, 28))

        assert [o.date for o in occurrences] == [date(2023, 2, 28)]

    def test_one_occurrence_per_month(self):
        """Test a full year of monthly occurrences."""
        template = make_template(recurrence_type='monthly', day_of_month=15)

        occurrences = expand(template, date(2024, 1, 1), date(2024, 12, 31))

        assert [o.date for o in occurrences] == [
            date(2024, month, 15) for month in range(1, 13)
        ]

    def test_partially_covered_months(self):
        """Test that anchor days outside a partial month are dropped."""
        template = make_template(recurrence_type='monthly', day_of_month=10)

        occurrences = expand(template, date(2024, 1, 20), date(2024, 3, 5))

        assert [o.date for o in occurrences] == [date(2024, 2, 10)]

    def test_last_month_included_when_anchor_inside(self):
        """Test the final month when the window ends mid-month."""
        template = make_template(recurrence_type='monthly', day_of_month=10)

        occurrences = expand(template, date(2024, 1, 20), date(2024, 3, 10))

        assert [o.date for o in occurrences] == [
            date(2024, 2, 10), date(2024, 3, 10)
        ]

    def test_crosses_year_boundary(self):
        """Test iteration from December into January."""
        template = make_template(recurrence_type='monthly', day_of_month=1)

        occurrences = expand(template, date(2023, 12, 1), date(2024, 1, 31))

        assert [o.date for o in occurrences] == [
            date(2023, 12, 1), date(2024, 1, 1)
        ]

    def test_missing_day_of_month(self):
        """Test that monthly without a day of month produces nothing."""
        template = make_template(recurrence_type='monthly', day_of_month=None)
        assert expand(template, date(2024, 1, 1), date(2024, 12, 31)) == []


class TestExpandWindow:
    """Test cases for window handling."""

    def test_template_start_after_range_end(self):
        """Test that a template starting after the range yields nothing."""
        template = make_template(recurrence_start_date=date(2024, 4, 1))
        assert expand(template, date(2024, 3, 1), date(2024, 3, 31)) == []

    def test_template_bounds_narrow_window(self):
        """Test intersection with the template's own bounds."""
        template = make_template(
            recurrence_start_date=date(2024, 3, 5),
            recurrence_end_date=date(2024, 3, 11)
        )

        occurrences = expand(template, date(2024, 3, 1), date(2024, 3, 31))

        assert [o.date for o in occurrences] == [
            date(2024, 3, 6), date(2024, 3, 11)
        ]

    def test_datetime_template_bounds(self):
        """Test template bounds given as datetimes."""
        template = make_template(
            recurrence_end_date=datetime(2024, 3, 4, 8, 0)
        )

        occurrences = expand(template, date(2024, 3, 1), date(2024, 3, 31))

        assert [o.date for o in occurrences] == [date(2024, 3, 4)]

    def test_inverted_range(self):
        """Test that an inverted range yields nothing."""
        assert expand(make_template(), date(2024, 3, 31), date(2024, 3, 1)) == []

    @pytest.mark.parametrize('recurrence_type', ['none', 'yearly', ''])
    def test_none_and_unknown_recurrence_types(self, recurrence_type):
        """Test that non-recurring and unknown types yield nothing."""
        template = make_template(recurrence_type=recurrence_type)
        assert expand(template, date(2024, 3, 1), date(2024, 3, 31)) == []

    def test_malformed_start_time(self):
        """Test that a malformed start time gives None without raising."""
        template = make_template(default_start_time='abc')

        occurrences = expand(template, date(2024, 3, 1), date(2024, 3, 31))

        assert len(occurrences) == 8
        assert all(o.start_time is None for o in occurrences)

    def test_repeated_calls_are_equal(self):
        """Test that expansion is deterministic."""
        template = make_template(recurrence_type='monthly', day_of_month=30)

        first = expand(template, date(2024, 1, 1), date(2024, 6, 30))
        second = expand(template, date(2024, 1, 1), date(2024, 6, 30))

        assert first == second


class TestOccurrencesForDates:
    """Test cases for explicit date lists."""

    def test_sorted_and_deduplicated(self):
        """Test that custom dates are sorted and collapsed."""
        template = make_template(recurrence_type='none')

        occurrences = occurrences_for_dates(template, [
            date(2024, 5, 3), datetime(2024, 5, 1, 12, 0), date(2024, 5, 3)
        ])

        assert occurrences == [
            Occurrence(
                date=date(2024, 5, 1),
                start_time=datetime(2024, 5, 1, 18, 0),
                end_time=datetime(2024, 5, 1, 21, 0)
            ),
            Occurrence(
                date=date(2024, 5, 3),
                start_time=datetime(2024, 5, 3, 18, 0),
                end_time=datetime(2024, 5, 3, 21, 0)
            )
        ]
