import pytest
from pymongo.errors import DuplicateKeyError


async def test_invoices_without_employee_and_period_do_not_collide(store):
    await store.invoices.insert_one({"_id": "draft-1", "invoiceNumber": "DRAFT-1"})
    await store.invoices.insert_one({"_id": "draft-2", "invoiceNumber": "DRAFT-2"})

    assert await store.invoices.count_documents({}) == 2


async def test_second_invoice_for_same_employee_period_rejected(store):
    await store.invoices.insert_one({"_id": "a", "employeeId": "emp-1", "period": "2024-11"})

    with pytest.raises(DuplicateKeyError):
        await store.invoices.insert_one({"_id": "b", "employeeId": "emp-1", "period": "2024-11"})


async def test_second_payroll_for_same_invoice_rejected(store):
    await store.payroll.insert_one({"_id": "p-1", "invoiceId": "inv-1"})
    await store.payroll.insert_one({"_id": "p-2", "notes": "manual entry"})
    await store.payroll.insert_one({"_id": "p-3", "notes": "manual entry"})

    with pytest.raises(DuplicateKeyError):
        await store.payroll.insert_one({"_id": "p-4", "invoiceId": "inv-1"})
