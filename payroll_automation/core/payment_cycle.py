"""
결제 주기(payment cycle) 계산.

작업일 + N일(영업일이 아니라 달력 기준) = 결제 예정일.
예: 20.11.2024 + 45일 = 04.01.2025
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union

from payroll_automation.core.errors import InvalidDateError

DEFAULT_PAYMENT_CYCLE_DAYS = 45

DateInput = Union[str, date, datetime]


def normalized_date(year: int, month: int, day: int) -> date:
    """
    범위를 벗어난 월/일을 달력 규칙대로 넘겨서 date를 만든다.
    31.02.2024 → 2024-03-02, 0일 → 전달 말일, 13월 → 다음 해 1월.
    """
    years, month_index = divmod(month - 1, 12)
    first = date(year + years, month_index + 1, 1)
    return first + timedelta(days=day - 1)


def parse_date_from_ddmmyyyy(value: Optional[str]) -> Optional[date]:
    """DD.MM.YYYY 문자열 파싱. 숫자 3개로 나눠지지 않으면 None."""
    if not value or "." not in value:
        return None

    parts = value.strip().split(".")
    if len(parts) != 3:
        return None

    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None

    try:
        return normalized_date(year, month, day)
    except (ValueError, OverflowError):
        return None


def parse_work_date(value: DateInput) -> date:
    """
    DD.MM.YYYY → ISO 문자열 순서로 시도.
    둘 다 실패하면 InvalidDateError (조용히 잘못된 값을 넘기지 않는다).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed = parse_date_from_ddmmyyyy(value)
    if parsed is not None:
        return parsed

    text = (value or "").strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise InvalidDateError(f"Unrecognized date: {value!r}") from None


def format_ddmmyyyy(value: date) -> str:
    return f"{value.day:02d}.{value.month:02d}.{value.year:04d}"


def calculate_payment_date_as_date(
    work_date: DateInput,
    cycle_days: int = DEFAULT_PAYMENT_CYCLE_DAYS,
) -> date:
    return parse_work_date(work_date) + timedelta(days=cycle_days)


def calculate_payment_date(
    work_date: DateInput,
    cycle_days: int = DEFAULT_PAYMENT_CYCLE_DAYS,
) -> str:
    """결제 예정일을 DD.MM.YYYY 문자열로 반환."""
    return format_ddmmyyyy(calculate_payment_date_as_date(work_date, cycle_days))
