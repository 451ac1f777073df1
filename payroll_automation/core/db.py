import logging
from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)

from payroll_automation.core.config import Settings

logger = logging.getLogger(__name__)

WORK_RECORDS_COLLECTION = "workRecords"
INVOICES_COLLECTION = "invoices"
PAYROLL_COLLECTION = "payroll"
EMPLOYEES_COLLECTION = "employees"
EMPLOYEE_PAY_RATES_COLLECTION = "employeePayRates"

# (collection, keys, options)
# unique 인덱스가 "없으면 생성"을 원자적으로 만들어 준다.
INDEXES: List[Tuple[str, List[Tuple[str, int]], Dict[str, Any]]] = [
    (
        INVOICES_COLLECTION,
        [("employeeId", 1), ("period", 1)],
        {
            "unique": True,
            "name": "uq_invoice_employee_period",
            # 두 필드가 없는 Document끼리 null/null로 충돌하지 않도록
            "partialFilterExpression": {
                "employeeId": {"$exists": True},
                "period": {"$exists": True},
            },
        },
    ),
    (
        PAYROLL_COLLECTION,
        [("invoiceId", 1)],
        {
            "unique": True,
            "name": "uq_payroll_invoice",
            "partialFilterExpression": {"invoiceId": {"$exists": True}},
        },
    ),
    (
        WORK_RECORDS_COLLECTION,
        [("employeeId", 1), ("date", 1)],
        {"name": "ix_work_record_employee_date"},
    ),
    (
        EMPLOYEE_PAY_RATES_COLLECTION,
        [("employeeId", 1)],
        {"name": "ix_pay_rate_employee"},
    ),
]


class MongoStore:
    """
    MongoDB 클라이언트 핸들.

    전역 싱글톤 대신 애플리케이션 시작 시 한 번 만들어서
    app.state에 보관하고, 각 컴포넌트에는 생성자로 넘겨준다.
    """

    def __init__(self, client: AsyncIOMotorClient, db_name: str) -> None:
        self._client = client
        self._db: AsyncIOMotorDatabase = client[db_name]

    @classmethod
    def connect(cls, settings: Settings) -> "MongoStore":
        client = AsyncIOMotorClient(settings.MONGODB_URI)
        return cls(client, settings.MONGODB_DB_NAME)

    async def init(self) -> None:
        """
        애플리케이션 시작 시 한 번 호출.
        멱등성 보장을 위한 unique 인덱스 생성 (이미 있으면 아무 일도 안 함).
        """
        for collection_name, keys, options in INDEXES:
            await self._db[collection_name].create_index(keys, **options)
            logger.info(
                "Ensured index %s on %s",
                options.get("name"),
                collection_name,
            )

    def close(self) -> None:
        self._client.close()

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self._db[name]

    @property
    def work_records(self) -> AsyncIOMotorCollection:
        return self._db[WORK_RECORDS_COLLECTION]

    @property
    def invoices(self) -> AsyncIOMotorCollection:
        return self._db[INVOICES_COLLECTION]

    @property
    def payroll(self) -> AsyncIOMotorCollection:
        return self._db[PAYROLL_COLLECTION]

    @property
    def employees(self) -> AsyncIOMotorCollection:
        return self._db[EMPLOYEES_COLLECTION]

    @property
    def pay_rates(self) -> AsyncIOMotorCollection:
        return self._db[EMPLOYEE_PAY_RATES_COLLECTION]
