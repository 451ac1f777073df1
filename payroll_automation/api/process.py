import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from payroll_automation.api.deps import error_response, get_automation, read_json_body
from payroll_automation.core.errors import AutomationError, InvalidRequestError
from payroll_automation.schemas.process import (
    BatchMonth,
    EmployeeMonth,
    InvoiceProcessRequest,
    SingleRecordStatusChange,
    decode_batch_month,
    decode_timesheet_request,
)
from payroll_automation.services.automation import AutomationService

logger = logging.getLogger(__name__)

invoices_router = APIRouter(
    prefix="/api/process-invoices",
    tags=["process"],
)

timesheets_router = APIRouter(
    prefix="/api/process-timesheets",
    tags=["process"],
)


@invoices_router.get("")
async def process_all_invoices(
    automation: AutomationService = Depends(get_automation),
):
    """
    전체 인보이스 상태 재계산 + 급여 기록 생성.
    cron 등에서 주기적으로 호출.
    """
    try:
        result = await automation.process_all_invoices()
    except AutomationError as exc:
        logger.warning("Error processing invoices: %s", exc)
        return error_response(exc)
    except Exception as exc:
        logger.exception("Error processing invoices")
        return error_response(exc)

    return {
        "success": True,
        **result.model_dump(),
        "message": (
            f"Processed {result.invoicesProcessed} invoices. "
            f"Updated {result.statusesUpdated} statuses, "
            f"created {result.payrollsCreated} payroll records."
        ),
    }


@invoices_router.post("")
async def process_single_invoice(
    request: Request,
    automation: AutomationService = Depends(get_automation),
):
    """인보이스 1건 처리. 바디: {"invoiceId": "..."}"""
    try:
        body = await read_json_body(request)
        try:
            payload = InvoiceProcessRequest.model_validate(body)
        except ValidationError:
            raise InvalidRequestError("invoiceId is required") from None

        result = await automation.process_single_invoice(payload.invoiceId)
    except AutomationError as exc:
        logger.warning("Error processing invoice: %s", exc)
        return error_response(exc)
    except Exception as exc:
        logger.exception("Error processing invoice")
        return error_response(exc)

    if result.payrollCreated:
        message = "Invoice processed and payroll record created"
    elif result.statusUpdated:
        message = "Invoice status updated"
    else:
        message = "Invoice processed (no changes needed)"

    return {
        "success": True,
        **result.model_dump(exclude_none=True),
        "message": message,
    }


async def _process_batch_month(automation: AutomationService, batch: BatchMonth) -> dict:
    """POST {year, month}와 GET ?year&month가 같은 결과를 내도록 공용으로 사용."""
    year, month = batch.resolve(automation.today())
    result = await automation.process_all_pending_timesheets(year, month)
    return {
        "success": True,
        **result.model_dump(),
        "message": (
            f"Processed {result.processed} employees. "
            f"Created {result.invoicesCreated} invoices and "
            f"{result.payrollsCreated} payroll records."
        ),
    }


@timesheets_router.post("")
async def process_timesheets(
    request: Request,
    automation: AutomationService = Depends(get_automation),
):
    """
    바디 형태별 처리:
    1) {employeeId, employeeName, recordDate}     - 근무 기록 승인 상태 변경
    2) {employeeId, employeeName, year, month}    - 직원 1명 특정 월
    3) {year?, month?}                            - 전체 직원 (생략 시 이번 달)
    """
    try:
        body = await read_json_body(request)
        payload = decode_timesheet_request(body)

        if isinstance(payload, SingleRecordStatusChange):
            result = await automation.process_timesheet_on_status_change(
                payload.employeeId,
                payload.employeeName,
                payload.recordDate,
            )
            if result.error:
                return {"success": False, "error": result.error}
            return {
                "success": True,
                "message": "Timesheet processed successfully",
            }

        if isinstance(payload, EmployeeMonth):
            result = await automation.process_employee_timesheet(
                payload.employeeId,
                payload.employeeName,
                payload.year,
                payload.month,
            )
            message = (
                "Invoice and payroll created successfully"
                if result.invoiceCreated
                else result.error or "No action taken"
            )
            return {
                "success": True,
                **result.model_dump(exclude_none=True),
                "message": message,
            }

        return await _process_batch_month(automation, payload)
    except AutomationError as exc:
        logger.warning("Error processing timesheets: %s", exc)
        return error_response(exc)
    except Exception as exc:
        logger.exception("Error processing timesheets")
        return error_response(exc)


@timesheets_router.get("")
async def process_timesheets_for_month(
    request: Request,
    automation: AutomationService = Depends(get_automation),
):
    """전체 직원의 미처리 근무 기록 처리. 쿼리: ?year=2024&month=11 (생략 시 이번 달)"""
    try:
        batch = decode_batch_month(dict(request.query_params))
        return await _process_batch_month(automation, batch)
    except AutomationError as exc:
        logger.warning("Error processing timesheets: %s", exc)
        return error_response(exc)
    except Exception as exc:
        logger.exception("Error processing timesheets")
        return error_response(exc)
