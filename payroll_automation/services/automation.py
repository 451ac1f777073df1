"""
근무 기록 → 인보이스 → 급여 자동화 진입점.

단위(인보이스 1건 / 직원 1명)별 도메인 에러는 결과 객체에 기록하고 다음 단위를 계속 처리한다.
반복 실행해도 안전하도록 생성은 전부 "없으면 생성"으로만 한다.
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from payroll_automation.core.config import Settings
from payroll_automation.core.db import MongoStore
from payroll_automation.core.errors import AutomationError, NotFoundError
from payroll_automation.core.notifications import Notifier
from payroll_automation.core.payment_cycle import parse_work_date
from payroll_automation.core.periods import BillingPeriod
from payroll_automation.schemas.invoice import Invoice
from payroll_automation.schemas.payroll import Payroll
from payroll_automation.schemas.process import (
    EmployeeTimesheetResult,
    InvoiceBatchResult,
    InvoiceProcessingResult,
    TimesheetBatchResult,
)
from payroll_automation.services.aggregator import aggregate_timesheet
from payroll_automation.services.invoice_status import (
    TERMINAL_STATUSES,
    calculate_invoice_status,
)
from payroll_automation.services.invoice_synthesizer import InvoiceSynthesizer
from payroll_automation.services.payroll_synthesizer import PayrollSynthesizer
from payroll_automation.services.repositories import (
    EmployeeRepository,
    InvoiceRepository,
    PayRateRepository,
    PayrollRepository,
    WorkRecordRepository,
)

logger = logging.getLogger(__name__)

# 단위별로 잡아서 기록하는 도메인 에러. 단건 처리에서는 PyMongoError 같은 인프라 에러가 그대로 올라가고,
# 배치 루프에서는 단위 에러로 기록된다.
UNIT_ERRORS = (AutomationError, ValidationError, ValueError)


class AutomationService:
    def __init__(
        self,
        store: MongoStore,
        settings: Settings,
        notifier: Optional[Notifier] = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.work_records = WorkRecordRepository(store)
        self.invoices = InvoiceRepository(store)
        self.payrolls = PayrollRepository(store)
        self.employees = EmployeeRepository(store)
        self.pay_rates = PayRateRepository(store)

        self.invoice_synthesizer = InvoiceSynthesizer(self.invoices, self.work_records, settings)
        self.payroll_synthesizer = PayrollSynthesizer(self.payrolls, self.invoices)

        self._notifier = notifier
        self._now = now

    def now(self) -> datetime:
        return self._now()

    def today(self) -> date:
        return self._now().date()

    # ------------------------------------------------------------------
    # 인보이스 → 급여
    # ------------------------------------------------------------------

    async def _process_invoice(self, invoice: Invoice, today: date) -> InvoiceProcessingResult:
        """상태 재계산 + 결제 대상이면 급여 기록 생성."""
        result = InvoiceProcessingResult()

        if invoice.status not in TERMINAL_STATUSES:
            new_status = calculate_invoice_status(invoice.issueDate, today)
            if new_status != invoice.status:
                await self.invoices.update_status(invoice.id, new_status)
                logger.info(
                    "Invoice %s status %s -> %s",
                    invoice.invoiceNumber,
                    invoice.status,
                    new_status,
                )
                invoice = invoice.model_copy(update={"status": new_status})
                result.statusUpdated = True

        employee = await self.employees.get(invoice.employeeId)
        payroll, created = await self.payroll_synthesizer.synthesize(invoice, employee, today)
        if created:
            result.payrollCreated = True
            result.payrollId = payroll.id
            await self._notify_payroll_created(payroll)
        return result

    async def process_single_invoice(self, invoice_id: str) -> InvoiceProcessingResult:
        invoice = await self.invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return await self._process_invoice(invoice, self.today())

    async def process_all_invoices(self) -> InvoiceBatchResult:
        result = InvoiceBatchResult()
        today = self.today()

        # 목록 조회 실패는 그대로 올려서 500
        raw_invoices = await self.invoices.list_unsettled()

        for raw in raw_invoices:
            result.invoicesProcessed += 1
            try:
                invoice = self.invoices.to_model(raw)
                processed = await self._process_invoice(invoice, today)
            except Exception as exc:
                # 조회 실패 등 인프라 에러도 해당 인보이스 에러로만 기록하고 계속 처리
                label = raw.get("invoiceNumber") or raw.get("_id")
                message = f"Error processing invoice {label}: {exc}"
                if isinstance(exc, UNIT_ERRORS):
                    logger.warning(message)
                else:
                    logger.exception(message)
                result.errors.append(message)
                continue

            if processed.statusUpdated:
                result.statusesUpdated += 1
            if processed.payrollCreated:
                result.payrollsCreated += 1

        logger.info(
            "Processed %d invoices: %d statuses updated, %d payroll created, %d errors",
            result.invoicesProcessed,
            result.statusesUpdated,
            result.payrollsCreated,
            len(result.errors),
        )
        return result

    # ------------------------------------------------------------------
    # 근무 기록 → 인보이스 → 급여
    # ------------------------------------------------------------------

    async def _run_employee_pipeline(
        self,
        employee_id: str,
        employee_name: str,
        period: BillingPeriod,
    ) -> EmployeeTimesheetResult:
        employee = await self.employees.get(employee_id)

        invoice = await self.invoice_synthesizer.find_existing(employee_id, period)
        created = False
        late_record_ids: List[str] = []
        if invoice is not None:
            late_record_ids = await self._reconcile_unbilled(invoice, period)
        else:
            records = await self.work_records.list_by_employee(
                employee_id,
                period.start.isoformat(),
                period.end.isoformat(),
            )
            pay_rates = await self.pay_rates.list_by_employee(employee_id)
            aggregation = aggregate_timesheet(records, period, pay_rates, employee_id)
            invoice, created = await self.invoice_synthesizer.synthesize(
                employee_id,
                employee_name,
                period,
                aggregation,
                employee,
                pay_rates,
            )

        result = EmployeeTimesheetResult(invoiceCreated=created)
        if invoice is None:
            # 승인된 근무 시간 없음 → 할 일 없음 (성공)
            return result
        result.invoiceId = invoice.id

        payroll, payroll_created = await self.payroll_synthesizer.synthesize(
            invoice, employee, self.today()
        )
        if payroll is not None:
            result.payrollId = payroll.id
        if payroll_created:
            result.payrollCreated = True
            await self._notify_payroll_created(payroll)
        if late_record_ids:
            result.error = (
                f"Records approved after invoice {invoice.invoiceNumber} was issued "
                f"were not billed: {', '.join(late_record_ids)}"
            )
        return result

    async def _reconcile_unbilled(self, invoice: Invoice, period: BillingPeriod) -> List[str]:
        """
        인보이스가 이미 있는데 청구 표시가 없는 승인 기록 정리.
        인보이스에 포함됐는데 표시만 빠진 기록은 invoiceId를 다시 찍고,
        발행 후에 승인된 기록은 제외 처리한 뒤 그 id 목록을 돌려준다.
        """
        unbilled = await self.work_records.list_unbilled(
            invoice.employeeId,
            period.start.isoformat(),
            period.end.isoformat(),
        )
        included = set(invoice.recordIds)
        repaired = [record.id for record in unbilled if record.id in included]
        late = [record.id for record in unbilled if record.id not in included]

        await self.work_records.mark_billed(repaired, invoice.id)
        await self.work_records.mark_excluded(late, invoice.id)
        if late:
            logger.warning(
                "Invoice %s already issued, %d late-approved records not billed: %s",
                invoice.invoiceNumber,
                len(late),
                late,
            )
        return late

    async def process_employee_timesheet(
        self,
        employee_id: str,
        employee_name: str,
        year: int,
        month: int,
    ) -> EmployeeTimesheetResult:
        try:
            period = BillingPeriod(year, month)
            return await self._run_employee_pipeline(employee_id, employee_name, period)
        except UNIT_ERRORS as exc:
            logger.warning(
                "Error processing timesheet for %s (%s-%s): %s",
                employee_name,
                year,
                month,
                exc,
            )
            return EmployeeTimesheetResult(error=str(exc))

    async def process_timesheet_on_status_change(
        self,
        employee_id: str,
        employee_name: str,
        record_date: str,
    ) -> EmployeeTimesheetResult:
        """근무 기록 1건의 승인 상태 변경 시 해당 월 전체를 다시 처리."""
        try:
            day = parse_work_date(record_date)
        except UNIT_ERRORS as exc:
            logger.warning("Error processing timesheet on status change: %s", exc)
            return EmployeeTimesheetResult(error=str(exc))
        return await self.process_employee_timesheet(
            employee_id, employee_name, day.year, day.month
        )

    async def process_all_pending_timesheets(self, year: int, month: int) -> TimesheetBatchResult:
        result = TimesheetBatchResult()
        period = BillingPeriod(year, month)

        employees = await self.work_records.list_unbilled_employees(
            period.start.isoformat(),
            period.end.isoformat(),
        )

        for employee_id, employee_name in employees:
            result.processed += 1
            try:
                processed = await self.process_employee_timesheet(
                    employee_id, employee_name, year, month
                )
            except Exception as exc:
                logger.exception(
                    "Error processing timesheet for %s (%s)", employee_name, period.key
                )
                result.errors.append(f"{employee_name or employee_id}: {exc}")
                continue

            if processed.invoiceCreated:
                result.invoicesCreated += 1
            if processed.payrollCreated:
                result.payrollsCreated += 1
            if processed.error:
                result.errors.append(f"{employee_name or employee_id}: {processed.error}")

        logger.info(
            "Processed %d employees for %s: %d invoices, %d payroll, %d errors",
            result.processed,
            period.key,
            result.invoicesCreated,
            result.payrollsCreated,
            len(result.errors),
        )
        return result

    async def _notify_payroll_created(self, payroll: Payroll) -> None:
        if self._notifier is None:
            return
        outcome = await self._notifier.payroll_created(payroll)
        if not outcome.delivered:
            logger.warning(
                "Payroll %s notification not delivered: %s",
                payroll.id,
                outcome.error,
            )
