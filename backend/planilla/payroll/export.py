"""各區薪資報表與多期間累計報表匯出 Excel（欄位與畫面表格一致）。"""
import io
from typing import Any, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, Side

from planilla.schemas import AREA_LABELS, AccumulationSummary, AccumulationView, AreaReport

AREA_REPORT_HEADERS = [
    "Trabajador", "Ingreso", "Días", "Remuneración", "Horas extras", "Feriados", "Domingos",
    "Bonos", "Faltas", "Permisos", "Tardanzas", "Adelantos", "Penalidades", "Pensión", "Neto",
]

_THIN = Side(style="thin")
_BORDER = Border(top=_THIN, bottom=_THIN, left=_THIN, right=_THIN)


def area_title(area: str) -> str:
    return AREA_LABELS.get(area, "Todas las áreas")


def _write_headers(ws, row_idx: int, headers: List[str]) -> None:
    header_font = Font(bold=True)
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for col, h in enumerate(headers, start=1):
        cell = ws.cell(row=row_idx, column=col, value=h)
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = _BORDER


def _write_values(ws, row_idx: int, values: List[Any], bold: bool = False) -> None:
    for col, value in enumerate(values, start=1):
        cell = ws.cell(row=row_idx, column=col, value=value)
        if isinstance(value, float):
            cell.number_format = "#,##0.00"
        if bold:
            cell.font = Font(bold=True)


def _apply_default_width(ws, columns: int, first_width: int = 28) -> None:
    for col in range(1, columns + 1):
        letter = ws.cell(row=1, column=col).column_letter
        ws.column_dimensions[letter].width = first_width if col == 1 else 14


def _to_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def build_area_report_excel(report: AreaReport, period_label: str) -> bytes:
    """第一列：報表標題；第二列：表頭；最後一列：淨額合計"""
    wb = Workbook()
    ws = wb.active
    ws.title = "Planilla"
    ws.cell(row=1, column=1, value=f"Planilla {period_label} - {area_title(report.area)}").font = Font(bold=True)
    _write_headers(ws, 2, AREA_REPORT_HEADERS)
    row_idx = 3
    for row in report.rows:
        s = row.summary
        _write_values(ws, row_idx, [
            s.employee_name,
            s.start_date.isoformat() if s.start_date else "—",
            s.days_display,
            round(s.remuneration, 2),
            round(s.overtime, 2),
            round(s.holiday_bonus, 2),
            round(s.weekend_sunday_bonus, 2),
            round(s.manual_bonuses, 2),
            round(s.absence, 2),
            round(s.permission, 2),
            round(s.tardiness, 2),
            round(s.manual_advances, 2),
            round(s.manual_deductions, 2),
            round(s.pension_amount, 2),
            round(s.net_pay, 2),
        ])
        row_idx += 1
    totals = ["Total"] + [""] * (len(AREA_REPORT_HEADERS) - 2) + [round(report.net_total, 2)]
    _write_values(ws, row_idx, totals, bold=True)
    _apply_default_width(ws, len(AREA_REPORT_HEADERS))
    return _to_bytes(wb)


def build_accumulation_excel(summary: AccumulationSummary, view: AccumulationView) -> bytes:
    """
    兩個工作表：
    - Acumulado：每人各期淨額、合計、實發、扣款與帳戶資料（view 之可見列）。
    - Resumen：各期淨額/實發/扣款/預支/國定假日/獎金/加班合計。
    """
    if not summary.ready:
        raise ValueError("El acumulado aún no está listo: faltan periodos por cargar.")
    wb = Workbook()
    ws = wb.active
    ws.title = "Acumulado"
    month_labels = [m.label for m in view.months]
    headers = ["Trabajador", "Área"] + month_labels + [
        "Total neto", "Total pagado", "Descuentos", "Banco", "Cuenta", "CCI", "Yape/Plin", "Pagado",
    ]
    _write_headers(ws, 1, headers)
    row_idx = 2
    for row in view.rows:
        _write_values(ws, row_idx, [
            row.employee_name,
            AREA_LABELS.get(row.area, row.area),
            *[round(v, 2) for v in row.per_month],
            round(row.total, 2),
            round(row.total_paid, 2),
            round(row.total_deductions, 2),
            row.bank,
            row.account,
            row.cci,
            row.yape_plin,
            "Sí" if row.paid else "No",
        ])
        row_idx += 1
    _write_values(ws, row_idx, [
        "Total", "",
        *[round(v, 2) for v in view.month_totals],
        round(view.total, 2),
        round(view.total_paid, 2),
        round(view.total_deductions, 2),
    ], bold=True)
    _apply_default_width(ws, len(headers))

    ws2 = wb.create_sheet(title="Resumen")
    _write_headers(ws2, 1, ["Concepto"] + [m.label for m in summary.months] + ["Total"])
    lines = [
        ("Neto", summary.month_totals, summary.total),
        ("Pagado", summary.month_totals_paid, summary.total_paid),
        ("Descuentos", summary.month_totals_deductions, summary.total_deductions),
        ("Adelantos", summary.month_advances, summary.total_advances),
        ("Feriados y domingos", summary.month_holidays, summary.total_holidays),
        ("Bonos", summary.month_bonuses, summary.total_bonuses),
        ("Horas extras", summary.month_overtime, summary.total_overtime),
    ]
    for offset, (label, values, total) in enumerate(lines, start=2):
        _write_values(ws2, offset, [label, *[round(v, 2) for v in values], round(total, 2)])
    _apply_default_width(ws2, len(summary.months) + 2, first_width=22)
    return _to_bytes(wb)
