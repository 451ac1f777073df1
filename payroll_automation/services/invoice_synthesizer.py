import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from payroll_automation.core.config import Settings
from payroll_automation.core.payment_cycle import calculate_payment_date_as_date
from payroll_automation.core.periods import BillingPeriod
from payroll_automation.schemas.employee import Employee, EmployeePayRate
from payroll_automation.schemas.invoice import Invoice
from payroll_automation.services.aggregator import TimesheetAggregation
from payroll_automation.services.rates import resolve_pay_rate
from payroll_automation.services.repositories import (
    InvoiceRepository,
    WorkRecordRepository,
)

logger = logging.getLogger(__name__)


def generate_invoice_number(employee_name: str, period: BillingPeriod) -> str:
    """형식: EMP-{직원 이름}-{YYYY}-{MM}"""
    name_part = re.sub(r"\s+", "-", employee_name.strip()).upper()
    return f"EMP-{name_part}-{period.year:04d}-{period.month:02d}"


def build_line_items(
    aggregation: TimesheetAggregation,
    pay_rates: List[EmployeePayRate],
    employee_id: str,
) -> Tuple[List[dict], Optional[str]]:
    """집계 버킷별 라인 아이템과 통화(currency)를 만든다."""
    line_items = []
    currency = None

    for bucket in aggregation.buckets:
        pay_rate = resolve_pay_rate(pay_rates, bucket.site_id, employee_id)
        rate = pay_rate.weekendRate if bucket.weekend else pay_rate.hourlyRate
        site_name = bucket.site_name or pay_rate.siteName or None
        currency = currency or pay_rate.currency

        kind = "weekend" if bucket.weekend else "regular"
        line_items.append(
            {
                "description": f"{site_name or 'General'} - {kind} hours",
                "siteId": bucket.site_id,
                "siteName": site_name,
                "weekend": bucket.weekend,
                "hours": bucket.hours,
                "rate": rate,
                "amount": round(bucket.hours * rate, 2),
            }
        )
    return line_items, currency


class InvoiceSynthesizer:
    """집계된 근무 시간 → 인보이스. (employeeId, period)당 1건만 생성."""

    def __init__(
        self,
        invoices: InvoiceRepository,
        work_records: WorkRecordRepository,
        settings: Settings,
    ) -> None:
        self._invoices = invoices
        self._work_records = work_records
        self._settings = settings

    async def find_existing(self, employee_id: str, period: BillingPeriod) -> Optional[Invoice]:
        return await self._invoices.find_for_period(employee_id, period.key)

    async def synthesize(
        self,
        employee_id: str,
        employee_name: str,
        period: BillingPeriod,
        aggregation: TimesheetAggregation,
        employee: Optional[Employee],
        pay_rates: List[EmployeePayRate],
    ) -> Tuple[Optional[Invoice], bool]:
        """
        1) 같은 직원/기간 인보이스가 있으면 그대로 반환 (created=False)
        2) 없고 청구 시간이 있으면 새로 생성 (created=True)
        3) 없고 청구 시간이 0이면 (None, False) - 에러 아님
        """
        existing = await self.find_existing(employee_id, period)
        if existing is not None:
            return existing, False

        if aggregation.is_empty:
            return None, False

        line_items, currency = build_line_items(aggregation, pay_rates, employee_id)

        amount = round(sum(item["amount"] for item in line_items), 2)
        gst_registered = bool(employee and employee.gstRegistered)
        gst = round(amount * self._settings.GST_RATE, 2) if gst_registered else 0
        total_amount = round(amount + gst, 2)

        cycle_days = self._settings.PAYMENT_CYCLE_DAYS
        if employee is not None and employee.paymentCycleDays is not None:
            cycle_days = employee.paymentCycleDays

        issue_date = period.start
        due_date = calculate_payment_date_as_date(issue_date, cycle_days)
        first_site = line_items[0]
        now = datetime.utcnow()

        doc = {
            "invoiceNumber": generate_invoice_number(employee_name, period),
            "employeeId": employee_id,
            "employeeName": employee_name,
            "clientName": employee_name,
            "siteId": first_site["siteId"] or "",
            "siteOfWork": first_site["siteName"],
            "period": period.key,
            "periodStart": aggregation.period_start.isoformat(),
            "periodEnd": aggregation.period_end.isoformat(),
            "lineItems": line_items,
            "totalHours": aggregation.total_hours,
            "amount": amount,
            "gst": gst,
            "totalAmount": total_amount,
            "currency": currency or self._settings.DEFAULT_CURRENCY,
            "issueDate": issue_date.isoformat(),
            "dueDate": due_date.isoformat(),
            "paymentCycleDays": cycle_days,
            "status": "pending",
            "recordIds": aggregation.record_ids,
            "notes": (
                f"Auto-generated from timesheet for {period.key}. "
                f"Total hours: {aggregation.total_hours}"
            ),
            "createdAt": now,
            "updatedAt": now,
        }

        invoice, created = await self._invoices.create_if_absent(doc)
        if created:
            await self._work_records.mark_billed(aggregation.record_ids, invoice.id)
            await self._work_records.mark_excluded(aggregation.excluded_record_ids, invoice.id)
            logger.info(
                "Created invoice %s: employee=%s hours=%s total=%s %s",
                invoice.invoiceNumber,
                employee_id,
                invoice.totalHours,
                invoice.totalAmount,
                invoice.currency,
            )
        return invoice, created
