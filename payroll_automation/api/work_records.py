from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from payroll_automation.api.deps import get_automation
from payroll_automation.schemas.work_record import (
    ApprovalDecision,
    ApprovalOutcome,
    ClockIn,
    ClockOut,
    WorkRecord,
)
from payroll_automation.services.automation import AutomationService

router = APIRouter(
    prefix="/work-records",
    tags=["work-records"],
)


def calculate_hours(clock_in: datetime, clock_out: datetime) -> float:
    """출근~퇴근 시간(시간 단위, 소수 둘째 자리 반올림)"""
    return round((clock_out - clock_in).total_seconds() / 3600, 2)


@router.post(
    "/clock-in",
    response_model=WorkRecord,
    status_code=status.HTTP_201_CREATED,
)
async def clock_in(
    payload: ClockIn,
    automation: AutomationService = Depends(get_automation),
):
    """
    출근 처리:
    - 오늘 날짜에 아직 퇴근하지 않은 기록이 있으면 400
    - 없으면 pending 상태의 새 근무 기록 생성
    """
    now = automation.now()
    today = now.date()

    existing = await automation.work_records.find_open_record(
        payload.employeeId, today.isoformat()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already clocked in today",
        )

    return await automation.work_records.insert(
        {
            "employeeId": payload.employeeId,
            "employeeName": payload.employeeName,
            "siteId": payload.siteId,
            "siteName": payload.siteName,
            "date": today.isoformat(),
            "clockInTime": now.isoformat(),
            "clockOutTime": None,
            "hoursWorked": 0,
            "isWeekend": today.weekday() >= 5,
            "isLeave": False,
            "approvalStatus": "pending",
            "createdAt": now,
            "updatedAt": now,
        }
    )


@router.post(
    "/clock-out",
    response_model=WorkRecord,
)
async def clock_out(
    payload: ClockOut,
    automation: AutomationService = Depends(get_automation),
):
    """
    퇴근 처리:
    - 오늘 출근 기록 중 아직 퇴근하지 않은 기록을 찾아서
      clockOutTime 세팅 + hoursWorked 계산
    """
    now = automation.now()

    record = await automation.work_records.find_open_record(
        payload.employeeId, now.date().isoformat()
    )
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active work record for today",
        )

    hours = calculate_hours(datetime.fromisoformat(record.clockInTime), now)
    return await automation.work_records.update(
        record.id,
        {"clockOutTime": now.isoformat(), "hoursWorked": hours},
    )


@router.get(
    "",
    response_model=List[WorkRecord],
)
async def list_work_records(
    employee_id: str = Query(..., alias="employeeId"),
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    automation: AutomationService = Depends(get_automation),
):
    """
    직원별 근무 기록 조회 (최신 날짜 먼저):
    GET /work-records?employeeId=abc&from=2024-11-01&to=2024-11-30
    """
    return await automation.work_records.list_by_employee(employee_id, from_date, to_date)


@router.patch(
    "/{record_id}/approval",
    response_model=ApprovalOutcome,
)
async def decide_approval(
    record_id: str,
    payload: ApprovalDecision,
    automation: AutomationService = Depends(get_automation),
):
    """
    관리자 승인/반려 처리.
    승인되면 해당 월 인보이스/급여 자동화를 바로 실행한다.
    """
    record = await automation.work_records.get(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Work record not found",
        )
    if record.invoiceId and payload.approvalStatus != "approved":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Work record is already billed on an invoice",
        )

    fields = {
        "approvalStatus": payload.approvalStatus,
        "approvedBy": payload.approvedBy,
        "approvedAt": automation.now() if payload.approvalStatus == "approved" else None,
    }
    if payload.notes is not None:
        fields["notes"] = payload.notes

    updated = await automation.work_records.update(record_id, fields)

    automation_result = None
    if payload.approvalStatus == "approved":
        automation_result = await automation.process_timesheet_on_status_change(
            updated.employeeId,
            updated.employeeName,
            updated.date,
        )

    return ApprovalOutcome(record=updated, automation=automation_result)
