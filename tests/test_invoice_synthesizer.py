import pytest

from payroll_automation.core.errors import MissingPayRateError
from payroll_automation.core.periods import BillingPeriod
from payroll_automation.services.aggregator import aggregate_timesheet
from payroll_automation.services.invoice_synthesizer import generate_invoice_number

NOVEMBER = BillingPeriod(2024, 11)


async def _aggregate(automation, employee_id="emp-1"):
    records = await automation.work_records.list_by_employee(employee_id, "2024-11-01", "2024-11-30")
    pay_rates = await automation.pay_rates.list_by_employee(employee_id)
    employee = await automation.employees.get(employee_id)
    return aggregate_timesheet(records, NOVEMBER, pay_rates, employee_id), employee, pay_rates


def test_invoice_number_format():
    assert generate_invoice_number("Jane  Doe", NOVEMBER) == "EMP-JANE-DOE-2024-11"
    assert generate_invoice_number("li", BillingPeriod(2025, 1)) == "EMP-LI-2025-01"


async def test_creates_invoice_with_gst_and_due_date(automation, seed, store):
    await seed.employee()
    await seed.pay_rate()
    first = await seed.work_record(day="2024-11-04", hours=8.0)
    second = await seed.work_record(day="2024-11-05", hours=7.5)
    aggregation, employee, pay_rates = await _aggregate(automation)

    invoice, created = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )

    assert created is True
    assert invoice.invoiceNumber == "EMP-JANE-DOE-2024-11"
    assert invoice.period == "2024-11"
    assert invoice.totalHours == 15.5
    assert invoice.amount == 465.0
    assert invoice.gst == 46.5
    assert invoice.totalAmount == 511.5
    assert invoice.issueDate == "2024-11-01"
    assert invoice.dueDate == "2024-12-16"
    assert invoice.status == "pending"
    assert invoice.siteOfWork == "Harbour Tower"
    assert len(invoice.lineItems) == 1
    assert invoice.lineItems[0].rate == 30.0

    billed = await store.work_records.count_documents({"invoiceId": invoice.id})
    assert billed == 2
    assert sorted(invoice.recordIds) == sorted([first["_id"], second["_id"]])


async def test_existing_invoice_returned_unchanged(automation, seed, store):
    await seed.pay_rate()
    await seed.work_record()
    aggregation, employee, pay_rates = await _aggregate(automation)

    first, created_first = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )
    second, created_second = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )

    assert created_first is True
    assert created_second is False
    assert second.id == first.id
    assert await store.invoices.count_documents({}) == 1


async def test_no_gst_and_employee_cycle_when_not_registered(automation, seed):
    await seed.employee(gstRegistered=False, paymentCycleDays=14)
    await seed.pay_rate()
    await seed.work_record(hours=10.0)
    aggregation, employee, pay_rates = await _aggregate(automation)

    invoice, _ = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )

    assert invoice.gst == 0
    assert invoice.totalAmount == 300.0
    assert invoice.dueDate == "2024-11-15"
    assert invoice.paymentCycleDays == 14


async def test_zero_hours_creates_nothing(automation, seed, store):
    await seed.pay_rate()
    await seed.work_record(approvalStatus="pending")
    aggregation, employee, pay_rates = await _aggregate(automation)

    invoice, created = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )

    assert invoice is None
    assert created is False
    assert await store.invoices.count_documents({}) == 0


async def test_missing_pay_rate_is_an_error(automation, seed):
    await seed.work_record()
    aggregation, employee, pay_rates = await _aggregate(automation)

    with pytest.raises(MissingPayRateError):
        await automation.invoice_synthesizer.synthesize(
            "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
        )


async def test_weekend_line_item_uses_weekend_rate(automation, seed):
    await seed.pay_rate(weekendRate=45.0)
    await seed.work_record(day="2024-11-04", hours=8.0)
    await seed.work_record(day="2024-11-09", hours=4.0, isWeekend=True)
    aggregation, employee, pay_rates = await _aggregate(automation)

    invoice, _ = await automation.invoice_synthesizer.synthesize(
        "emp-1", "Jane Doe", NOVEMBER, aggregation, employee, pay_rates
    )

    amounts = {item.weekend: item.amount for item in invoice.lineItems}
    assert amounts == {False: 240.0, True: 180.0}
    assert invoice.amount == 420.0
    # 직원 정보가 없으면 GST 없음
    assert invoice.gst == 0


async def test_duplicate_insert_returns_existing(automation, seed, store):
    existing = await seed.invoice(period="2024-11")

    invoice, created = await automation.invoices.create_if_absent(
        {
            "invoiceNumber": "EMP-JANE-DOE-2024-11",
            "employeeId": "emp-1",
            "period": "2024-11",
            "issueDate": "2024-11-01",
            "status": "pending",
        }
    )

    assert created is False
    assert invoice.id == existing["_id"]
    assert await store.invoices.count_documents({}) == 1
