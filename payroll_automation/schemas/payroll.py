from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from payroll_automation.schemas.invoice import PaymentStatus


class Payroll(BaseModel):
    """
    payroll 컬렉션 Document 응답용.
    인보이스 1건당 최대 1건, 생성 후 수정하지 않는다.
    """
    id: str
    invoiceId: str
    invoiceNumber: str
    employeeId: str
    name: str = ""
    siteOfWork: Optional[str] = None
    period: str
    month: str
    date: str
    modeOfCashFlow: str = "outflow"
    typeOfCashFlow: str = "internal_payroll"
    abnRegistered: bool = False
    gstRegistered: bool = False
    totalHours: float = 0
    amountExclGst: float
    gstAmount: float = 0
    totalAmount: float
    currency: str = "AUD"
    paymentMethod: str = "bank_transfer"
    status: PaymentStatus
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
