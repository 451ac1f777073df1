from datetime import date
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from payroll_automation.core.errors import InvalidRequestError
from payroll_automation.core.payment_cycle import parse_work_date


# ---------------------------------------------------------------------------
# 요청 바디
# ---------------------------------------------------------------------------

class InvoiceProcessRequest(BaseModel):
    """POST /api/process-invoices 요청 바디"""
    invoiceId: str = Field(..., min_length=1)


class SingleRecordStatusChange(BaseModel):
    """근무 기록 1건의 승인 상태가 바뀌었을 때"""
    model_config = ConfigDict(extra="forbid")

    employeeId: str = Field(..., min_length=1)
    employeeName: str = Field(..., min_length=1)
    recordDate: str = Field(..., min_length=1)

    @field_validator("recordDate")
    @classmethod
    def validate_record_date(cls, v: str) -> str:
        parse_work_date(v)
        return v


class EmployeeMonth(BaseModel):
    """직원 1명 + 특정 월"""
    model_config = ConfigDict(extra="forbid")

    employeeId: str = Field(..., min_length=1)
    employeeName: str = Field(..., min_length=1)
    year: int = Field(..., ge=1970, le=9998)
    month: int = Field(..., ge=1, le=12)


class BatchMonth(BaseModel):
    """전체 직원 + 특정 월 (생략 시 이번 달)"""
    model_config = ConfigDict(extra="forbid")

    year: Optional[int] = Field(None, ge=1970, le=9998)
    month: Optional[int] = Field(None, ge=1, le=12)

    def resolve(self, today: date) -> Tuple[int, int]:
        return (self.year or today.year, self.month or today.month)


TimesheetRequest = Union[SingleRecordStatusChange, EmployeeMonth, BatchMonth]

_TIMESHEET_VARIANTS = (SingleRecordStatusChange, EmployeeMonth, BatchMonth)

_ACCEPTED_SHAPES = (
    "{employeeId, employeeName, recordDate}",
    "{employeeId, employeeName, year, month}",
    "{year?, month?}",
)


def decode_timesheet_request(body: Any) -> TimesheetRequest:
    """
    필드 존재 여부로 분기하지 않고, 정의된 variant 중 정확히 맞는 것으로만 디코딩.
    어느 것에도 맞지 않으면 InvalidRequestError.
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    for variant in _TIMESHEET_VARIANTS:
        try:
            return variant.model_validate(body)
        except ValidationError:
            continue

    raise InvalidRequestError(
        "Request body must match one of: " + " | ".join(_ACCEPTED_SHAPES)
    )


def decode_batch_month(params: dict) -> BatchMonth:
    """GET 쿼리 파라미터 → BatchMonth (POST {year, month}와 동일하게 처리)"""
    cleaned = {k: v for k, v in params.items() if k in ("year", "month") and v not in (None, "")}
    try:
        return BatchMonth.model_validate(cleaned)
    except ValidationError as exc:
        raise InvalidRequestError(
            "year and month must be integers (month 1-12)"
        ) from exc


# ---------------------------------------------------------------------------
# 처리 결과 (저장하지 않음, 호출마다 새로 생성)
# ---------------------------------------------------------------------------

class InvoiceProcessingResult(BaseModel):
    statusUpdated: bool = False
    payrollCreated: bool = False
    payrollId: Optional[str] = None


class InvoiceBatchResult(BaseModel):
    invoicesProcessed: int = 0
    statusesUpdated: int = 0
    payrollsCreated: int = 0
    errors: List[str] = []


class EmployeeTimesheetResult(BaseModel):
    invoiceCreated: bool = False
    invoiceId: Optional[str] = None
    payrollCreated: bool = False
    payrollId: Optional[str] = None
    error: Optional[str] = None


class TimesheetBatchResult(BaseModel):
    processed: int = 0
    invoicesCreated: int = 0
    payrollsCreated: int = 0
    errors: List[str] = []
