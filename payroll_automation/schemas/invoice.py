from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

PaymentStatus = Literal["pending", "overdue", "received"]


class LineItem(BaseModel):
    description: str
    siteId: Optional[str] = None
    siteName: Optional[str] = None
    weekend: bool = False
    hours: float
    rate: float
    amount: float


class Invoice(BaseModel):
    """
    invoices 컬렉션 Document 응답용.
    (employeeId, period) 조합당 최대 1건.
    """
    id: str
    invoiceNumber: str
    employeeId: str
    employeeName: str = ""
    clientName: str = ""
    siteId: str = ""
    siteOfWork: Optional[str] = None
    period: str
    periodStart: Optional[str] = None
    periodEnd: Optional[str] = None
    lineItems: List[LineItem] = []
    totalHours: float = 0
    amount: float = 0
    gst: float = 0
    totalAmount: float = 0
    currency: str = "AUD"
    issueDate: str
    dueDate: Optional[str] = None
    paymentCycleDays: Optional[int] = None
    status: PaymentStatus = "pending"
    recordIds: List[str] = []
    payrollId: Optional[str] = None
    paymentDate: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
