"""Unit tests for natural language date parsing."""
from datetime import date

import pytest

from scheduling.natural_date import get_date_suggestions, parse_natural_date


TODAY = date(2025, 6, 10)  # Tuesday

WEEKDAY_NAMES = [
    ('monday', 0), ('tuesday', 1), ('wednesday', 2), ('thursday', 3),
    ('friday', 4), ('saturday', 5), ('sunday', 6),
    ('mon', 0), ('tue', 1), ('wed', 2), ('thu', 3), ('fri', 4), ('sat', 5), ('sun', 6),
]


class TestParseNaturalDate:
    """Test cases for parse_natural_date."""

    def test_today(self):
        """Test the 'today' keyword."""
        parsed = parse_natural_date('today', today=TODAY)

        assert parsed.date == TODAY
        assert parsed.label == 'Today'

    @pytest.mark.parametrize('text', ['tomorrow', 'tmrw', '  Tomorrow  '])
    def test_tomorrow(self, text):
        """Test 'tomorrow' and its abbreviation, ignoring case and spaces."""
        parsed = parse_natural_date(text, today=TODAY)

        assert parsed.date == date(2025, 6, 11)
        assert parsed.label == 'Tomorrow'

    def test_next_week_is_next_monday(self):
        """Test 'next week' resolves to the coming Monday."""
        parsed = parse_natural_date('next week', today=TODAY)

        assert parsed.date == date(2025, 6, 16)
        assert parsed.label == 'Next week'

    def test_next_month(self):
        """Test 'next month' adds one calendar month."""
        parsed = parse_natural_date('next month', today=TODAY)

        assert parsed.date == date(2025, 7, 10)
        assert parsed.label == 'Next month'

    def test_next_month_clamps_to_month_end(self):
        """Test 'next month' from Jan 31 lands on the last day of February."""
        parsed = parse_natural_date('next month', today=date(2025, 1, 31))

        assert parsed.date == date(2025, 2, 28)

    def test_next_friday(self):
        """Test the documented example for 'next friday'."""
        parsed = parse_natural_date('next friday', today=TODAY)

        assert parsed.date == date(2025, 6, 13)
        assert parsed.label == 'Fri, Jun 13'

    @pytest.mark.parametrize('name,weekday', WEEKDAY_NAMES)
    def test_weekday_forms_agree_and_are_in_future(self, name, weekday):
        """Test bare, 'next' and 'this' weekday forms give the same future date."""
        bare = parse_natural_date(name, today=TODAY)
        with_next = parse_natural_date(f"next {name}", today=TODAY)
        with_this = parse_natural_date(f"this {name}", today=TODAY)

        assert bare.date == with_next.date == with_this.date
        assert bare.date > TODAY
        assert bare.date.weekday() == weekday

    def test_same_weekday_resolves_one_week_later(self):
        """Test 'next tuesday' on a Tuesday is a week away, never today."""
        assert parse_natural_date('next tuesday', today=TODAY).date == date(2025, 6, 17)
        assert parse_natural_date('this tuesday', today=TODAY).date == date(2025, 6, 17)
        assert parse_natural_date('tuesday', today=TODAY).date == date(2025, 6, 17)

    def test_in_days(self):
        """Test 'in N days'."""
        parsed = parse_natural_date('in 3 days', today=TODAY)

        assert parsed.date == date(2025, 6, 13)
        assert parsed.label == 'Fri, Jun 13'

    def test_in_weeks(self):
        """Test the documented example for 'in 2 weeks'."""
        parsed = parse_natural_date('in 2 weeks', today=TODAY)

        assert parsed.date == date(2025, 6, 24)

    def test_in_one_month(self):
        """Test singular unit 'in 1 month'."""
        parsed = parse_natural_date('in 1 month', today=TODAY)

        assert parsed.date == date(2025, 7, 10)

    def test_month_name_and_day_upcoming(self):
        """Test a month/day later this year keeps the current year."""
        parsed = parse_natural_date('jul 4', today=TODAY)

        assert parsed.date == date(2025, 7, 4)
        assert parsed.label == 'Jul 4, 2025'

    def test_month_name_and_day_passed_rolls_to_next_year(self):
        """Test a month/day already passed moves to next year."""
        parsed = parse_natural_date('january 15', today=TODAY)

        assert parsed.date == date(2026, 1, 15)
        assert parsed.label == 'Jan 15, 2026'

    def test_month_name_today_is_not_rolled(self):
        """Test a month/day equal to today stays in the current year."""
        parsed = parse_natural_date('jun 10', today=TODAY)

        assert parsed.date == TODAY

    def test_unknown_word_with_number(self):
        """Test a non-month word followed by a number is not parsed."""
        assert parse_natural_date('page 15', today=TODAY) is None

    def test_slash_date_upcoming(self):
        """Test 'M/D' later this year."""
        parsed = parse_natural_date('12/25', today=TODAY)

        assert parsed.date == date(2025, 12, 25)

    def test_slash_date_passed_rolls_to_next_year(self):
        """Test 'M/D' already passed moves to next year."""
        parsed = parse_natural_date('1/15', today=TODAY)

        assert parsed.date == date(2026, 1, 15)

    @pytest.mark.parametrize('text', ['2/30', '13/1', '0/5', '4/31', 'feb 30'])
    def test_invalid_calendar_dates(self, text):
        """Test calendar-invalid month/day pairs return None."""
        assert parse_natural_date(text, today=TODAY) is None

    def test_full_slash_date_not_rolled(self):
        """Test 'M/D/YYYY' keeps the explicit year even in the past."""
        parsed = parse_natural_date('1/15/2025', today=TODAY)

        assert parsed.date == date(2025, 1, 15)
        assert parsed.label == 'Jan 15, 2025'

    def test_full_slash_date_invalid(self):
        """Test Feb 29 in a non-leap year is rejected."""
        assert parse_natural_date('2/29/2025', today=TODAY) is None
        assert parse_natural_date('2/29/2024', today=TODAY).date == date(2024, 2, 29)

    @pytest.mark.parametrize('text', ['', '   ', 'someday', 'next blursday', 'in two weeks'])
    def test_unparseable_input(self, text):
        """Test unrecognized text returns None instead of raising."""
        assert parse_natural_date(text, today=TODAY) is None

    def test_none_input(self):
        """Test None input returns None."""
        assert parse_natural_date(None, today=TODAY) is None


class TestGetDateSuggestions:
    """Test cases for get_date_suggestions."""

    def test_default_menu(self):
        """Test the fixed menu of six suggestions."""
        suggestions = get_date_suggestions(today=TODAY)

        assert [s.label for s in suggestions] == [
            'Today', 'Tomorrow', 'Next Monday', 'In 1 week', 'In 2 weeks', 'Next month'
        ]
        assert [s.date for s in suggestions] == [
            date(2025, 6, 10),
            date(2025, 6, 11),
            date(2025, 6, 16),
            date(2025, 6, 17),
            date(2025, 6, 24),
            date(2025, 7, 10),
        ]
        assert suggestions[2].short_label == 'Next Mon'

    def test_ignore_weekends_on_weekday_keeps_menu(self):
        """Test nothing shifts when no suggestion lands on a weekend."""
        assert get_date_suggestions(ignore_weekends=True, today=TODAY) == \
            get_date_suggestions(today=TODAY)

    def test_ignore_weekends_shifts_and_deduplicates(self):
        """Test weekend dates move to Monday and duplicates are dropped."""
        friday = date(2025, 6, 13)

        suggestions = get_date_suggestions(ignore_weekends=True, today=friday)

        # Tomorrow (Sat) collapses onto Next Monday, which is dropped
        assert [s.label for s in suggestions] == [
            'Today', 'Tomorrow', 'In 1 week', 'In 2 weeks', 'Next month'
        ]
        assert suggestions[1].date == date(2025, 6, 16)
        assert all(s.date.weekday() < 5 for s in suggestions)
        assert len({s.date for s in suggestions}) == len(suggestions)

    def test_ignore_weekends_when_today_is_saturday(self):
        """Test a Saturday 'today' shifts to Monday and absorbs later duplicates."""
        saturday = date(2025, 6, 14)

        suggestions = get_date_suggestions(ignore_weekends=True, today=saturday)

        assert suggestions[0].label == 'Today'
        assert suggestions[0].date == date(2025, 6, 16)
        assert [s.label for s in suggestions] == [
            'Today', 'In 1 week', 'In 2 weeks', 'Next month'
        ]
