import logging
from datetime import date, datetime
from typing import Optional, Tuple

from payroll_automation.core.payment_cycle import format_ddmmyyyy
from payroll_automation.core.periods import month_name
from payroll_automation.schemas.employee import Employee
from payroll_automation.schemas.invoice import Invoice
from payroll_automation.schemas.payroll import Payroll
from payroll_automation.services.invoice_status import is_billable, payment_month_start
from payroll_automation.services.repositories import InvoiceRepository, PayrollRepository

logger = logging.getLogger(__name__)


class PayrollSynthesizer:
    """결제 대상이 된 인보이스 → 급여 기록. 인보이스 1건당 1건만 생성."""

    def __init__(self, payrolls: PayrollRepository, invoices: InvoiceRepository) -> None:
        self._payrolls = payrolls
        self._invoices = invoices

    async def synthesize(
        self,
        invoice: Invoice,
        employee: Optional[Employee],
        today: date,
    ) -> Tuple[Optional[Payroll], bool]:
        existing = await self._payrolls.find_by_invoice(invoice.id)
        if existing is not None:
            # 급여 생성 후 인보이스 갱신 전에 중단된 경우 복구
            if invoice.payrollId != existing.id:
                await self._invoices.set_payroll(invoice.id, existing.id)
            return existing, False

        if not is_billable(invoice.status, invoice.issueDate, today):
            return None, False

        payment_date = payment_month_start(invoice.issueDate)
        gst_registered = employee.gstRegistered if employee else invoice.gst > 0

        doc = {
            "invoiceId": invoice.id,
            "invoiceNumber": invoice.invoiceNumber,
            "employeeId": invoice.employeeId,
            "name": invoice.employeeName or invoice.clientName,
            "siteOfWork": invoice.siteOfWork,
            "period": invoice.period,
            "month": month_name(payment_date),
            "date": format_ddmmyyyy(payment_date),
            "modeOfCashFlow": "outflow",
            "typeOfCashFlow": "internal_payroll",
            "abnRegistered": bool(employee and employee.abnRegistered),
            "gstRegistered": gst_registered,
            "totalHours": invoice.totalHours,
            "amountExclGst": invoice.amount,
            "gstAmount": invoice.gst,
            "totalAmount": invoice.totalAmount,
            "currency": invoice.currency,
            "paymentMethod": "bank_transfer",
            "status": invoice.status,
            "notes": f"Auto-generated from invoice {invoice.invoiceNumber}",
            "createdAt": datetime.utcnow(),
        }

        payroll, created = await self._payrolls.create_if_absent(doc)
        if created:
            await self._invoices.set_payroll(invoice.id, payroll.id)
            logger.info(
                "Created payroll %s from invoice %s: total=%s %s",
                payroll.id,
                invoice.invoiceNumber,
                payroll.totalAmount,
                payroll.currency,
            )
        return payroll, created
