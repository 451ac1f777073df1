from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from payroll_automation.schemas.process import EmployeeTimesheetResult

ApprovalStatus = Literal["pending", "approved", "rejected"]


class WorkRecord(BaseModel):
    """
    workRecords 컬렉션 Document 응답용.
    date는 "YYYY-MM-DD" 문자열 키로 저장된다.
    """
    id: str
    employeeId: str
    employeeName: str = ""
    siteId: Optional[str] = None
    siteName: Optional[str] = None
    date: str
    clockInTime: str = ""
    clockOutTime: Optional[str] = None
    hoursWorked: float = 0
    isWeekend: bool = False
    isLeave: bool = False
    approvalStatus: ApprovalStatus = "pending"
    approvedBy: Optional[str] = None
    approvedAt: Optional[datetime] = None
    notes: Optional[str] = None
    invoiceId: Optional[str] = None
    # 인보이스 발행 후 승인됐거나 주말 시급이 없어 청구되지 못한 경우
    excludedFromInvoiceId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ClockIn(BaseModel):
    """POST /work-records/clock-in 요청 바디"""
    employeeId: str = Field(..., min_length=1)
    employeeName: str = Field(..., min_length=1)
    siteId: Optional[str] = None
    siteName: Optional[str] = None


class ClockOut(BaseModel):
    employeeId: str = Field(..., min_length=1)


class ApprovalDecision(BaseModel):
    """PATCH /work-records/{id}/approval 요청 바디"""
    approvalStatus: ApprovalStatus
    approvedBy: Optional[str] = None
    notes: Optional[str] = None


class ApprovalOutcome(BaseModel):
    """승인 처리 결과 + (승인된 경우) 자동화 처리 결과"""
    record: WorkRecord
    automation: Optional[EmployeeTimesheetResult] = None
