from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from payroll_automation.core.periods import BillingPeriod
from payroll_automation.schemas.employee import EmployeePayRate
from payroll_automation.schemas.work_record import WorkRecord
from payroll_automation.services.rates import resolve_pay_rate


@dataclass
class HoursBucket:
    """현장(site) + 주말 여부 단위로 묶은 근무 시간. 인보이스 라인 아이템 1개에 대응."""
    site_id: Optional[str]
    site_name: Optional[str]
    weekend: bool
    hours: float = 0
    record_ids: List[str] = field(default_factory=list)


@dataclass
class TimesheetAggregation:
    period_start: date
    period_end: date
    total_hours: float = 0
    record_ids: List[str] = field(default_factory=list)
    excluded_record_ids: List[str] = field(default_factory=list)
    buckets: List[HoursBucket] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total_hours <= 0


def is_billable_record(record: WorkRecord, period: BillingPeriod) -> bool:
    """기간 안 + 승인됨 + 퇴근 완료 + 휴가 아님"""
    return (
        period.start.isoformat() <= record.date <= period.end.isoformat()
        and record.approvalStatus == "approved"
        and bool(record.clockOutTime)
        and not record.isLeave
    )


def aggregate_timesheet(
    records: List[WorkRecord],
    period: BillingPeriod,
    pay_rates: List[EmployeePayRate],
    employee_id: str = "",
) -> TimesheetAggregation:
    """
    승인된 근무 기록을 기간 단위로 집계.

    주말 기록은 해당 현장 시급에 weekendRate가 있을 때만 포함하고,
    없으면 excluded_record_ids로 빠진다.
    승인된 기록이 없으면 빈 집계를 반환 (에러 아님).
    """
    aggregation = TimesheetAggregation(period_start=period.start, period_end=period.end)
    buckets: Dict[Tuple[Optional[str], bool], HoursBucket] = {}

    for record in sorted(records, key=lambda r: (r.date, r.clockInTime)):
        if not is_billable_record(record, period):
            continue

        if record.isWeekend:
            pay_rate = resolve_pay_rate(pay_rates, record.siteId, employee_id)
            if pay_rate.weekendRate is None:
                aggregation.excluded_record_ids.append(record.id)
                continue

        key = (record.siteId, record.isWeekend)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = HoursBucket(
                site_id=record.siteId,
                site_name=record.siteName,
                weekend=record.isWeekend,
            )
            buckets[key] = bucket

        bucket.hours += record.hoursWorked
        bucket.record_ids.append(record.id)
        aggregation.record_ids.append(record.id)

    for bucket in buckets.values():
        bucket.hours = round(bucket.hours, 2)

    aggregation.buckets = list(buckets.values())
    aggregation.total_hours = round(sum(b.hours for b in aggregation.buckets), 2)
    return aggregation
