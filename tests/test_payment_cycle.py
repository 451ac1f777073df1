from datetime import date, datetime, timedelta

import pytest

from payroll_automation.core.errors import InvalidDateError
from payroll_automation.core.payment_cycle import (
    calculate_payment_date,
    calculate_payment_date_as_date,
    parse_date_from_ddmmyyyy,
    parse_work_date,
)


def test_default_cycle_crosses_year_boundary():
    assert calculate_payment_date("20.11.2024", 45) == "04.01.2025"
    assert calculate_payment_date("20.11.2024") == "04.01.2025"


@pytest.mark.parametrize(
    "work_date, cycle_days",
    [
        (date(2024, 2, 28), 1),      # 윤년 2/29
        (date(2023, 2, 28), 1),      # 평년
        (date(2023, 12, 31), 1),
        (date(2024, 1, 31), 30),
        (date(2024, 11, 1), 45),
        (date(2024, 6, 15), 0),
        (date(2020, 1, 1), 366),
    ],
)
def test_result_parses_back_to_input_plus_cycle(work_date, cycle_days):
    text = work_date.strftime("%d.%m.%Y")
    result = calculate_payment_date(text, cycle_days)

    assert parse_date_from_ddmmyyyy(result) == work_date + timedelta(days=cycle_days)
    assert calculate_payment_date_as_date(text, cycle_days) == work_date + timedelta(days=cycle_days)


def test_leap_day_is_reachable():
    assert calculate_payment_date("28.02.2024", 1) == "29.02.2024"
    assert calculate_payment_date("28.02.2023", 1) == "01.03.2023"


def test_accepts_iso_strings_and_date_values():
    assert calculate_payment_date("2024-11-01", 45) == "16.12.2024"
    assert calculate_payment_date("2024-11-01T10:30:00", 45) == "16.12.2024"
    assert calculate_payment_date(date(2024, 11, 1), 45) == "16.12.2024"
    assert calculate_payment_date(datetime(2024, 11, 1, 23, 59), 45) == "16.12.2024"


def test_parse_rolls_over_invalid_calendar_dates():
    # 달력 범위를 넘는 값은 다음 달/해로 넘어간다
    assert parse_date_from_ddmmyyyy("31.02.2024") == date(2024, 3, 2)
    assert parse_date_from_ddmmyyyy("31.02.2023") == date(2023, 3, 3)
    assert parse_date_from_ddmmyyyy("00.03.2024") == date(2024, 2, 29)
    assert parse_date_from_ddmmyyyy("01.13.2024") == date(2025, 1, 1)


@pytest.mark.parametrize("value", ["", None, "2024-11-20", "1.2", "aa.bb.cccc", "1.2.3.4"])
def test_parse_returns_none_for_malformed(value):
    assert parse_date_from_ddmmyyyy(value) is None


def test_unparseable_input_is_rejected():
    with pytest.raises(InvalidDateError):
        calculate_payment_date("not a date")
    with pytest.raises(InvalidDateError):
        parse_work_date("20.11")


def test_dotted_fallback_to_iso_when_not_three_parts():
    with pytest.raises(InvalidDateError):
        calculate_payment_date("20.11.2024.5", 1)
