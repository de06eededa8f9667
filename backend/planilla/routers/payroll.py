"""
薪資計算 API：無狀態，依請求內容計算後回傳（不存取資料庫）。
引擎之 ValueError（期間已結算、累計期間過多、篩選值錯誤）轉為 400。
"""
import io
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from planilla.payroll.accumulation import build_accumulation, filter_accumulation
from planilla.payroll.entry_calculator import compute_entry, ensure_period_open
from planilla.payroll.export import area_title, build_accumulation_excel, build_area_report_excel
from planilla.payroll.payslip import build_payslip
from planilla.payroll.summary import area_report, period_summary_stats, period_totals
from planilla.rules.sunday_penalty import get_sunday_penalty_rule
from planilla.schemas import (
    AccumulationRequest,
    AccumulationResponse,
    EntryComputeRequest,
    PayrollEntry,
    Payslip,
    PayslipRequest,
    PeriodSummaryRequest,
    PeriodSummaryResponse,
)
from planilla.utils.http_headers import build_content_disposition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payroll", tags=["payroll"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": build_content_disposition(filename)},
    )


def _accumulate(body: AccumulationRequest) -> AccumulationResponse:
    try:
        summary = build_accumulation(body.periods, body.details, body.employees, body.payments)
        view = filter_accumulation(summary, body.payments, body.area, body.payment_filter, body.account_filter)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AccumulationResponse(summary=summary, view=view)


@router.post("/entries/compute", response_model=PayrollEntry, response_model_by_alias=True)
def compute_payroll_entry(body: EntryComputeRequest) -> PayrollEntry:
    """
    依出勤紀錄與調整項目產生單一員工之薪資單。
    已結算（CLOSED）期間需帶 recalcClosed=true。
    """
    try:
        ensure_period_open(body.period, body.recalc_closed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    entry = compute_entry(body.period, body.employee, body.attendance, body.adjustments)
    logger.info("entry computed employee=%s period=%s net=%s", body.employee.id, body.period.id, entry.net_pay)
    return entry


@router.post("/entries/payslip", response_model=Payslip, response_model_by_alias=True)
def payroll_payslip(body: PayslipRequest) -> Payslip:
    return build_payslip(body.entry, body.period)


@router.post("/periods/summary", response_model=PeriodSummaryResponse, response_model_by_alias=True)
def payroll_period_summary(body: PeriodSummaryRequest) -> PeriodSummaryResponse:
    """期間彙總：每筆薪資單明細、期間合計與統計卡片、所選區域之淨額合計"""
    try:
        report = area_report(body.entries, body.period, body.area)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    totals = period_totals(body.entries)
    return PeriodSummaryResponse(
        summaries=[row.summary for row in report.rows],
        totals=totals,
        stats=period_summary_stats(totals),
        area_net_total=report.net_total,
    )


@router.post("/periods/area-report/export")
def payroll_area_report_export(body: PeriodSummaryRequest):
    try:
        report = area_report(body.entries, body.period, body.area)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    content = build_area_report_excel(report, body.period.label)
    filename = f"Planilla_{body.period.year}_{body.period.month:02d}_{area_title(report.area)}.xlsx"
    return _xlsx_response(content, filename)


@router.post("/accumulation", response_model=AccumulationResponse, response_model_by_alias=True)
def payroll_accumulation(body: AccumulationRequest) -> AccumulationResponse:
    """
    多期間累計。任一期間之薪資單未提供（details 缺 key 或 null）時
    summary.ready=false 且不回傳列，呼叫端需先取得所有期間資料。
    """
    return _accumulate(body)


@router.post("/accumulation/export")
def payroll_accumulation_export(body: AccumulationRequest):
    result = _accumulate(body)
    if not result.summary.ready:
        raise HTTPException(status_code=409, detail="El acumulado aún no está listo: faltan periodos por cargar.")
    content = build_accumulation_excel(result.summary, result.view)
    labels = "_".join(m.label.replace(" ", "_") for m in result.summary.months) or "sin_periodos"
    return _xlsx_response(content, f"Acumulado_{labels}.xlsx")


@router.get("/rules/sunday-penalty", response_model=Dict[str, Any])
def sunday_penalty_rule() -> Dict[str, Any]:
    """取得週日缺勤扣薪規則（來自 config/payroll_rules.yaml）"""
    return get_sunday_penalty_rule()
