from datetime import datetime

import pytest
from mongomock_motor import AsyncMongoMockClient

from payroll_automation.core.config import Settings
from payroll_automation.core.db import MongoStore
from payroll_automation.services.automation import AutomationService
from payroll_automation.services.repositories import new_id

# 11월 근무분이 결제 대상이 된 시점 (12월 1일 이후, 15일 이전)
DEFAULT_NOW = datetime(2024, 12, 3, 9, 0)


class FakeClock:
    def __init__(self, current: datetime) -> None:
        self.current = current

    def __call__(self) -> datetime:
        return self.current


class Seeder:
    """테스트용 Document 생성 헬퍼"""

    def __init__(self, store: MongoStore) -> None:
        self.store = store

    async def employee(self, employee_id="emp-1", **overrides) -> dict:
        doc = {
            "_id": employee_id,
            "name": "Jane Doe",
            "email": "jane@example.com",
            "gstRegistered": True,
            "abnRegistered": True,
            "status": "active",
        }
        doc.update(overrides)
        await self.store.employees.insert_one(doc)
        return doc

    async def pay_rate(self, employee_id="emp-1", **overrides) -> dict:
        doc = {
            "_id": new_id(),
            "employeeId": employee_id,
            "employeeName": "Jane Doe",
            "siteId": "site-1",
            "siteName": "Harbour Tower",
            "hourlyRate": 30.0,
            "currency": "AUD",
        }
        doc.update(overrides)
        await self.store.pay_rates.insert_one(doc)
        return doc

    async def work_record(self, employee_id="emp-1", day="2024-11-04", hours=8.0, **overrides) -> dict:
        doc = {
            "_id": new_id(),
            "employeeId": employee_id,
            "employeeName": "Jane Doe",
            "siteId": "site-1",
            "siteName": "Harbour Tower",
            "date": day,
            "clockInTime": f"{day}T08:00:00",
            "clockOutTime": f"{day}T16:00:00",
            "hoursWorked": hours,
            "isWeekend": False,
            "isLeave": False,
            "approvalStatus": "approved",
            "createdAt": datetime(2024, 11, 1),
            "updatedAt": datetime(2024, 11, 1),
        }
        doc.update(overrides)
        await self.store.work_records.insert_one(doc)
        return doc

    async def invoice(self, employee_id="emp-1", period="2024-10", **overrides) -> dict:
        doc = {
            "_id": new_id(),
            "invoiceNumber": f"EMP-JANE-DOE-{period}",
            "employeeId": employee_id,
            "employeeName": "Jane Doe",
            "clientName": "Jane Doe",
            "siteId": "site-1",
            "siteOfWork": "Harbour Tower",
            "period": period,
            "totalHours": 10.0,
            "amount": 300.0,
            "gst": 30.0,
            "totalAmount": 330.0,
            "currency": "AUD",
            "issueDate": f"{period}-01",
            "dueDate": None,
            "status": "pending",
            "createdAt": datetime(2024, 11, 1),
            "updatedAt": datetime(2024, 11, 1),
        }
        doc.update(overrides)
        await self.store.invoices.insert_one(doc)
        return doc


@pytest.fixture
def settings():
    return Settings(
        MONGODB_URI="mongodb://localhost:27017",
        MONGODB_DB_NAME="erp_test",
        PAYMENT_CYCLE_DAYS=45,
        GST_RATE=0.1,
        DEFAULT_CURRENCY="AUD",
        NOTIFICATION_SERVICE_BASE_URL=None,
    )


@pytest.fixture
async def store(settings):
    store = MongoStore(AsyncMongoMockClient(), settings.MONGODB_DB_NAME)
    await store.init()
    return store


@pytest.fixture
def store_factory(settings):
    """독립된 in-memory 저장소가 여러 개 필요할 때 사용"""

    async def make():
        store = MongoStore(AsyncMongoMockClient(), settings.MONGODB_DB_NAME)
        await store.init()
        return store, Seeder(store)

    return make


@pytest.fixture
def clock():
    return FakeClock(DEFAULT_NOW)


@pytest.fixture
def automation(store, settings, clock):
    return AutomationService(store, settings, now=clock)


@pytest.fixture
def seed(store):
    return Seeder(store)
