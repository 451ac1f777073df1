"""
인보이스 상태 계산 규칙.

- 11월 인보이스는 12월 1일부터 결제 대상(pending, billable)
- 12월 15일부터는 overdue
- received(입금 완료)는 최종 상태라 자동으로 덮어쓰지 않음
"""
from datetime import date

from payroll_automation.core.payment_cycle import parse_work_date
from payroll_automation.core.periods import BillingPeriod

OVERDUE_DAY = 15

TERMINAL_STATUSES = frozenset({"received"})


def payment_month_start(issue_date: str) -> date:
    """발행일 다음 달 1일 (급여 지급일)."""
    issue = parse_work_date(issue_date)
    return BillingPeriod.containing(issue).next().start


def calculate_invoice_status(issue_date: str, today: date) -> str:
    overdue_from = payment_month_start(issue_date).replace(day=OVERDUE_DAY)
    if today >= overdue_from:
        return "overdue"
    return "pending"


def is_billable(status: str, issue_date: str, today: date) -> bool:
    """급여 기록을 만들어도 되는 상태인지. 진행 중인 달의 pending은 아직 대기."""
    if status in TERMINAL_STATUSES or status == "overdue":
        return True
    return today >= payment_month_start(issue_date)
