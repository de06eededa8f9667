"""Excel 匯出測試：以 openpyxl 讀回檢查標題、表頭、資料列與合計。"""
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from planilla.payroll.accumulation import build_accumulation, filter_accumulation
from planilla.payroll.export import AREA_REPORT_HEADERS, build_accumulation_excel, build_area_report_excel
from planilla.payroll.summary import area_report
from planilla.schemas import Employee, PayrollBreakdown, PayrollEntry, PayrollPeriod

PERIOD = PayrollPeriod(id=1, month=1, year=2025, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), working_days=30)


def _entries():
    return [
        PayrollEntry(
            employee_id=1,
            employee=Employee(id=1, first_name="Ana", last_name="Perez", account_number="123"),
            base_salary=1500,
            net_pay=1400,
            breakdown=PayrollBreakdown(monthly_base=1500, absence_deduction=50, manual_advances=50, manual_deductions=50),
        ),
        PayrollEntry(
            employee_id=2,
            employee=Employee(id=2, first_name="Luis", last_name="Alvarez", area="ADMINISTRATIVE"),
            base_salary=1200,
            net_pay=1200,
        ),
    ]


def test_area_report_excel():
    report = area_report(_entries(), PERIOD, "OPERATIVE")
    content = build_area_report_excel(report, PERIOD.label)
    ws = load_workbook(io.BytesIO(content)).active
    assert ws.cell(row=1, column=1).value == "Planilla Enero 2025 - Área operativa"
    assert [ws.cell(row=2, column=c).value for c in range(1, len(AREA_REPORT_HEADERS) + 1)] == AREA_REPORT_HEADERS
    assert ws.cell(row=3, column=1).value == "Perez Ana"
    assert ws.cell(row=3, column=4).value == 1500
    assert ws.cell(row=4, column=1).value == "Total"
    assert ws.cell(row=4, column=len(AREA_REPORT_HEADERS)).value == 1400


def test_accumulation_excel():
    summary = build_accumulation([PERIOD], {1: _entries()}, payments={1: True})
    view = filter_accumulation(summary)
    wb = load_workbook(io.BytesIO(build_accumulation_excel(summary, view)))
    assert wb.sheetnames == ["Acumulado", "Resumen"]
    ws = wb["Acumulado"]
    assert ws.cell(row=1, column=3).value == "Enero 2025"
    assert ws.cell(row=2, column=1).value == "Alvarez Luis"
    assert ws.cell(row=3, column=1).value == "Perez Ana"
    assert ws.cell(row=3, column=5).value == 1450
    assert ws.cell(row=3, column=8).value == "123"
    assert ws.cell(row=3, column=11).value == "Sí"
    assert ws.cell(row=4, column=1).value == "Total"
    assert ws.cell(row=4, column=4).value == 2600
    resumen = wb["Resumen"]
    assert resumen.cell(row=2, column=1).value == "Neto"
    assert resumen.cell(row=5, column=3).value == 50


def test_accumulation_excel_not_ready():
    summary = build_accumulation([PERIOD], {})
    with pytest.raises(ValueError):
        build_accumulation_excel(summary, filter_accumulation(summary))
