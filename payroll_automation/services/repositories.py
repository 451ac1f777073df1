import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from payroll_automation.core.db import MongoStore
from payroll_automation.schemas.employee import Employee, EmployeePayRate
from payroll_automation.schemas.invoice import Invoice
from payroll_automation.schemas.payroll import Payroll
from payroll_automation.schemas.work_record import WorkRecord

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def new_id() -> str:
    return str(ObjectId())


def _serialize_document(raw: dict, model: Type[ModelT]) -> ModelT:
    """
    MongoDB Document(dict) -> Pydantic 모델로 변환.
    _id 필드는 id로 바꿔서 노출.
    """
    data = raw.copy()
    data["id"] = str(data.pop("_id"))
    return model.model_validate(data)


class WorkRecordRepository:
    def __init__(self, store: MongoStore) -> None:
        self._collection = store.work_records

    async def get(self, record_id: str) -> Optional[WorkRecord]:
        raw = await self._collection.find_one({"_id": record_id})
        return _serialize_document(raw, WorkRecord) if raw else None

    async def list_by_employee(
        self,
        employee_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[WorkRecord]:
        """직원별 근무 기록 (최신 날짜 먼저). 날짜는 YYYY-MM-DD 문자열 비교."""
        query: Dict[str, Any] = {"employeeId": employee_id}
        date_range: Dict[str, str] = {}
        if start_date:
            date_range["$gte"] = start_date
        if end_date:
            date_range["$lte"] = end_date
        if date_range:
            query["date"] = date_range

        cursor = self._collection.find(query).sort([("date", -1), ("clockInTime", -1)])
        docs = await cursor.to_list(length=None)
        return [_serialize_document(doc, WorkRecord) for doc in docs]

    @staticmethod
    def _unbilled_query(start_date: str, end_date: str) -> Dict[str, Any]:
        """
        청구 대상인데 아직 어떤 인보이스에도 들어가지 않은 기록.
        인보이스에서 제외 처리된 기록(excludedFromInvoiceId)은 다시 잡지 않는다.
        """
        return {
            "date": {"$gte": start_date, "$lte": end_date},
            "approvalStatus": "approved",
            "clockOutTime": {"$nin": [None, ""]},
            "isLeave": {"$ne": True},
            "invoiceId": {"$exists": False},
            "excludedFromInvoiceId": {"$exists": False},
        }

    async def list_unbilled(
        self,
        employee_id: str,
        start_date: str,
        end_date: str,
    ) -> List[WorkRecord]:
        query = self._unbilled_query(start_date, end_date)
        query["employeeId"] = employee_id
        cursor = self._collection.find(query).sort([("date", 1), ("clockInTime", 1)])
        docs = await cursor.to_list(length=None)
        return [_serialize_document(doc, WorkRecord) for doc in docs]

    async def list_unbilled_employees(
        self,
        start_date: str,
        end_date: str,
    ) -> List[Tuple[str, str]]:
        """
        기간 내 승인 + 퇴근 완료 + 아직 인보이스에 포함되지 않은 기록이 있는 직원 목록.
        (employeeId, employeeName) 튜플, 이름순.
        """
        cursor = self._collection.find(
            self._unbilled_query(start_date, end_date),
            {"employeeId": 1, "employeeName": 1},
        )
        docs = await cursor.to_list(length=None)

        employees: Dict[str, str] = {}
        for doc in docs:
            employee_id = doc.get("employeeId")
            if employee_id and employee_id not in employees:
                employees[employee_id] = doc.get("employeeName") or ""
        return sorted(employees.items(), key=lambda item: (item[1], item[0]))

    async def find_open_record(self, employee_id: str, day: str) -> Optional[WorkRecord]:
        raw = await self._collection.find_one(
            {"employeeId": employee_id, "date": day, "clockOutTime": None}
        )
        return _serialize_document(raw, WorkRecord) if raw else None

    async def insert(self, doc: dict) -> WorkRecord:
        doc = {"_id": new_id(), **doc}
        await self._collection.insert_one(doc)
        return _serialize_document(doc, WorkRecord)

    async def update(self, record_id: str, fields: dict) -> Optional[WorkRecord]:
        fields = {**fields, "updatedAt": datetime.utcnow()}
        await self._collection.update_one({"_id": record_id}, {"$set": fields})
        return await self.get(record_id)

    async def mark_billed(self, record_ids: List[str], invoice_id: str) -> None:
        if not record_ids:
            return
        await self._collection.update_many(
            {"_id": {"$in": record_ids}},
            {"$set": {"invoiceId": invoice_id, "updatedAt": datetime.utcnow()}},
        )

    async def mark_excluded(self, record_ids: List[str], invoice_id: str) -> None:
        """해당 월 인보이스에 반영되지 못한 기록 표시 (배치 재실행 시 다시 잡지 않도록)."""
        if not record_ids:
            return
        await self._collection.update_many(
            {"_id": {"$in": record_ids}},
            {"$set": {"excludedFromInvoiceId": invoice_id, "updatedAt": datetime.utcnow()}},
        )


class InvoiceRepository:
    def __init__(self, store: MongoStore) -> None:
        self._collection = store.invoices

    async def get(self, invoice_id: str) -> Optional[Invoice]:
        raw = await self._collection.find_one({"_id": invoice_id})
        return _serialize_document(raw, Invoice) if raw else None

    async def find_for_period(self, employee_id: str, period: str) -> Optional[Invoice]:
        raw = await self._collection.find_one({"employeeId": employee_id, "period": period})
        return _serialize_document(raw, Invoice) if raw else None

    async def create_if_absent(self, doc: dict) -> Tuple[Invoice, bool]:
        """
        (employeeId, period) unique 인덱스 덕분에 동시에 두 번 들어와도 1건만 생성.
        이미 있으면 기존 인보이스와 created=False 반환.
        """
        doc = {"_id": new_id(), **doc}
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError:
            existing = await self.find_for_period(doc["employeeId"], doc["period"])
            if existing is None:
                raise
            logger.info(
                "Invoice for employee=%s period=%s already exists (id=%s)",
                doc["employeeId"],
                doc["period"],
                existing.id,
            )
            return existing, False
        return _serialize_document(doc, Invoice), True

    async def update_status(self, invoice_id: str, status: str) -> None:
        await self._collection.update_one(
            {"_id": invoice_id},
            {"$set": {"status": status, "updatedAt": datetime.utcnow()}},
        )

    async def set_payroll(self, invoice_id: str, payroll_id: str) -> None:
        await self._collection.update_one(
            {"_id": invoice_id},
            {"$set": {"payrollId": payroll_id, "updatedAt": datetime.utcnow()}},
        )

    async def list_unsettled(self) -> List[dict]:
        """
        아직 처리가 끝나지 않은 인보이스 (received가 아니거나 급여 기록이 없는 것).
        Document 단위 에러를 호출 쪽에서 잡을 수 있도록 raw dict로 반환.
        """
        cursor = self._collection.find(
            {
                "$or": [
                    {"status": {"$ne": "received"}},
                    {"payrollId": {"$exists": False}},
                ]
            }
        ).sort("createdAt", 1)
        return await cursor.to_list(length=None)

    async def list(
        self,
        status: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> List[Invoice]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if employee_id:
            query["employeeId"] = employee_id

        cursor = self._collection.find(query).sort("createdAt", -1)
        docs = await cursor.to_list(length=None)
        return [_serialize_document(doc, Invoice) for doc in docs]

    @staticmethod
    def to_model(raw: dict) -> Invoice:
        return _serialize_document(raw, Invoice)


class PayrollRepository:
    def __init__(self, store: MongoStore) -> None:
        self._collection = store.payroll

    async def find_by_invoice(self, invoice_id: str) -> Optional[Payroll]:
        raw = await self._collection.find_one({"invoiceId": invoice_id})
        return _serialize_document(raw, Payroll) if raw else None

    async def create_if_absent(self, doc: dict) -> Tuple[Payroll, bool]:
        """invoiceId unique 인덱스 기반 원자적 생성."""
        doc = {"_id": new_id(), **doc}
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError:
            existing = await self.find_by_invoice(doc["invoiceId"])
            if existing is None:
                raise
            logger.info(
                "Payroll for invoice=%s already exists (id=%s)",
                doc["invoiceId"],
                existing.id,
            )
            return existing, False
        return _serialize_document(doc, Payroll), True

    async def list(self, employee_id: Optional[str] = None) -> List[Payroll]:
        query = {"employeeId": employee_id} if employee_id else {}
        cursor = self._collection.find(query).sort("createdAt", 1)
        docs = await cursor.to_list(length=None)
        return [_serialize_document(doc, Payroll) for doc in docs]


class EmployeeRepository:
    def __init__(self, store: MongoStore) -> None:
        self._collection = store.employees

    async def get(self, employee_id: str) -> Optional[Employee]:
        raw = await self._collection.find_one({"_id": employee_id})
        return _serialize_document(raw, Employee) if raw else None


class PayRateRepository:
    def __init__(self, store: MongoStore) -> None:
        self._collection = store.pay_rates

    async def list_by_employee(self, employee_id: str) -> List[EmployeePayRate]:
        cursor = self._collection.find({"employeeId": employee_id}).sort("siteName", 1)
        docs = await cursor.to_list(length=None)
        return [_serialize_document(doc, EmployeePayRate) for doc in docs]
