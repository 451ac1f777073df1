from typing import Optional

from pydantic import BaseModel, Field


class Employee(BaseModel):
    id: str
    name: str = ""
    email: Optional[str] = None
    gstRegistered: bool = False
    abnRegistered: bool = False
    # 없으면 설정값(PAYMENT_CYCLE_DAYS) 사용
    paymentCycleDays: Optional[int] = Field(None, ge=0)
    status: str = "active"


class EmployeePayRate(BaseModel):
    """
    현장(site)별 직원 시급.
    weekendRate가 있으면 주말 근무도 청구 대상 (주말 수당 규칙).
    """
    id: str
    employeeId: str
    employeeName: str = ""
    siteId: str = ""
    siteName: str = ""
    hourlyRate: float = Field(..., ge=0)
    weekendRate: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    notes: Optional[str] = None
