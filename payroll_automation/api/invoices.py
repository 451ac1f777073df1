from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from payroll_automation.api.deps import get_automation
from payroll_automation.schemas.invoice import Invoice, PaymentStatus
from payroll_automation.schemas.payroll import Payroll
from payroll_automation.services.automation import AutomationService

router = APIRouter(
    tags=["invoices"],
)


@router.get(
    "/invoices",
    response_model=List[Invoice],
)
async def list_invoices(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    automation: AutomationService = Depends(get_automation),
):
    """인보이스 목록 (최근 생성 순)"""
    return await automation.invoices.list(status=status_filter, employee_id=employee_id)


@router.get(
    "/invoices/{invoice_id}",
    response_model=Invoice,
)
async def get_invoice(
    invoice_id: str,
    automation: AutomationService = Depends(get_automation),
):
    invoice = await automation.invoices.get(invoice_id)
    if invoice is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invoice not found",
        )
    return invoice


@router.get(
    "/payroll",
    response_model=List[Payroll],
)
async def list_payroll(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    automation: AutomationService = Depends(get_automation),
):
    """급여 기록 목록 (생성 순)"""
    return await automation.payrolls.list(employee_id=employee_id)
