"""計算引擎資料形狀與 API 請求/回應結構 - Pydantic。

輸入（員工、期間、出勤、薪資單、調整）由外部資料層提供，欄位同時接受 snake_case 與
REST 層的 camelCase；數值欄位為 None 表示「未提供」，計算時一律視為 0（見 payroll/facts.py）。
"""
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# 別名：欄位名 date 與型別 date 會觸發 Pydantic 的 field name clashing，改用 DateType 註解
DateType = date


# ---------- 封閉集合 ----------
AREA_ALL = "ALL"
DEFAULT_AREA = "OPERATIVE"
AREA_VALUES = ("OPERATIVE", "ADMINISTRATIVE")
AREA_LABELS = {
    "OPERATIVE": "Área operativa",
    "ADMINISTRATIVE": "Área administrativa",
}
AREA_BUCKETS = (AREA_ALL,) + AREA_VALUES

ADJUSTMENT_LABELS = {
    "BONUS": "Ingreso / bono",
    "DEDUCTION": "Descuento",
    "ADVANCE": "Adelanto de sueldo",
}
PERIOD_STATUS_LABELS = {
    "OPEN": "Abierto",
    "PROCESSED": "Procesado",
    "CLOSED": "Cerrado",
}
PENSION_SYSTEM_LABELS = {
    "ONP": "ONP (13%)",
    "AFP": "AFP",
    "SNP": "SNP",
    "NINGUNO": "No aplica",
    "EXONERADO": "Exonerado",
}
BANK_TYPE_LABELS = {
    "BCP": "BCP",
    "INTERBANK": "Interbank",
    "SCOTIABANK": "Scotiabank",
    "BANCO_NACION": "Banco de la Nación",
    "YAPE_PLIN": "Yape/Plin",
    "OTROS": "Otros",
}
MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]

AdjustmentType = Literal["BONUS", "DEDUCTION", "ADVANCE"]
AttendanceStatus = Literal["PRESENT", "TARDY", "ABSENT", "PERMISSION"]
PeriodStatus = Literal["OPEN", "PROCESSED", "CLOSED"]

# REST 層日期可能為 2025-01-16 或 2025-01-16T00:00:00.000Z，只取日期部分
_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def coerce_date(v: Any) -> Optional[date]:
    """字串取 YYYY-MM-DD 前綴；無法解析回傳 None（視為未提供日期）"""
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    m = _DATE_PREFIX.match(str(v).strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- 輸入 ----------
class Employee(CamelModel):
    """員工快照（期間計算當下的狀態），由外部員工登錄提供"""
    id: int
    first_name: str = ""
    last_name: str = ""
    document_number: Optional[str] = None
    position: Optional[str] = None
    base_salary: Optional[float] = Field(None, description="月薪")
    daily_hours: Optional[float] = Field(None, description="每日工時，預設 8")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    area: str = Field(DEFAULT_AREA, description="OPERATIVE / ADMINISTRATIVE")
    absence_sunday_penalty: bool = Field(False, description="平日缺勤是否加扣當週週日")
    pension_system: Optional[str] = None
    pension_rate: Optional[float] = None
    health_rate: Optional[float] = None
    bank_type: Optional[str] = None
    account_number: Optional[str] = None
    cci: Optional[str] = None
    phone: Optional[str] = Field(None, description="Yape/Plin 手機")
    is_active: bool = True

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[date]:
        return coerce_date(v)

    @field_validator("area", mode="before")
    @classmethod
    def normalize_area(cls, v: Any) -> str:
        key = str(v or "").strip().upper()
        if key in AREA_VALUES:
            return key
        if key:
            logger.warning("未知區域 %s，視為 %s", v, DEFAULT_AREA)
        return DEFAULT_AREA

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()


class PayrollPeriod(CamelModel):
    id: int
    month: int = Field(..., ge=1, le=12)
    year: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    working_days: Optional[float] = Field(None, description="設定之基準天數（20~31，或固定 30）")
    status: PeriodStatus = "OPEN"
    notes: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[date]:
        return coerce_date(v)

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)


class AttendanceRecord(CamelModel):
    """單日出勤紀錄（產生薪資單時使用）"""
    date: DateType
    status: AttendanceStatus = "PRESENT"
    minutes_late: Optional[int] = None
    permission_hours: Optional[float] = None
    permission_paid: Optional[bool] = None
    extra_hours: Optional[float] = None
    holiday_count: Optional[float] = None
    holiday_worked: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return coerce_date(v) or v


class Adjustment(CamelModel):
    id: Optional[int] = None
    type: AdjustmentType
    concept: str = ""
    amount: Optional[float] = Field(None, description="正數金額")


class AttendanceFacts(CamelModel):
    """薪資單內嵌之出勤彙總"""
    total_records: Optional[float] = None
    worked_days: Optional[float] = None
    absence_days: Optional[float] = None
    recorded_absence_days: Optional[float] = None
    absence_penalty_days: Optional[float] = Field(None, description="因平日缺勤加扣之週日天數")
    penalty_weeks: Optional[float] = None
    sunday_penalty_applied: Optional[bool] = None
    tardiness_minutes: Optional[float] = None
    permission_days: Optional[float] = None
    permission_hours: Optional[float] = None
    overtime_hours: Optional[float] = None
    holiday_days: Optional[float] = None
    weekend_sunday_days: Optional[float] = None
    eligible_days: Optional[float] = None
    period_days: Optional[float] = None
    start_date: Optional[date] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None

    @field_validator("start_date", "period_start", "period_end", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[date]:
        return coerce_date(v)


class PayrollBreakdown(CamelModel):
    """薪資單金額明細；部分欄位可能缺漏"""
    monthly_base: Optional[float] = None
    base_salary: Optional[float] = None
    daily_rate: Optional[float] = None
    hourly_rate: Optional[float] = None
    absence_deduction: Optional[float] = None
    permission_deduction: Optional[float] = None
    tardiness_deduction: Optional[float] = None
    manual_advances: Optional[float] = None
    manual_deductions: Optional[float] = Field(None, description="手動扣款（含預支）")
    overtime_bonus: Optional[float] = None
    holiday_bonus: Optional[float] = None
    weekend_sunday_bonus: Optional[float] = None
    manual_bonuses: Optional[float] = None
    absence_penalty_days: Optional[float] = None
    period_days: Optional[float] = None
    eligible_days: Optional[float] = None


class PayrollEntry(CamelModel):
    """單一員工於單一期間之薪資單"""
    id: Optional[int] = None
    period_id: Optional[int] = None
    employee_id: int
    employee: Optional[Employee] = None
    base_salary: Optional[float] = Field(None, description="已按比例計算之底薪")
    daily_rate: Optional[float] = None
    hourly_rate: Optional[float] = None
    worked_days: Optional[float] = None
    absence_days: Optional[float] = None
    tardiness_minutes: Optional[float] = None
    permission_days: Optional[float] = None
    permission_hours: Optional[float] = None
    overtime_hours: Optional[float] = None
    holiday_days: Optional[float] = None
    holiday_bonus: Optional[float] = None
    bonuses_total: Optional[float] = None
    deductions_total: Optional[float] = None
    pension_amount: Optional[float] = None
    health_amount: Optional[float] = None
    gross_earnings: Optional[float] = None
    net_pay: Optional[float] = None
    breakdown: PayrollBreakdown = Field(default_factory=PayrollBreakdown)
    attendance: AttendanceFacts = Field(default_factory=AttendanceFacts)
    adjustments: List[Adjustment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def lift_details(cls, data: Any) -> Any:
        # REST 層格式：details.breakdown / details.attendance
        if not isinstance(data, dict):
            return data
        data = dict(data)
        details = data.pop("details", None)
        if isinstance(details, dict):
            for key in ("breakdown", "attendance"):
                if data.get(key) is None and isinstance(details.get(key), dict):
                    data[key] = details[key]
        for key in ("breakdown", "attendance", "adjustments"):
            if key in data and data[key] is None:
                data.pop(key)
        return data


# ---------- 輸出 ----------
class EligibilityInfo(CamelModel):
    period_day_count: int
    eligible_days: int
    gap_days: int


class DeductionBreakdown(CamelModel):
    absence: float = 0.0
    permission: float = 0.0
    tardiness: float = 0.0
    manual: float = Field(0.0, description="手動扣款扣除預支後之金額")

    def total(self) -> float:
        return max(self.absence + self.permission + self.tardiness + self.manual, 0.0)

    def add(self, other: "DeductionBreakdown") -> None:
        self.absence += other.absence
        self.permission += other.permission
        self.tardiness += other.tardiness
        self.manual += other.manual


class DeductionPart(CamelModel):
    key: str
    label: str
    value: float


class DayInfo(CamelModel):
    base_days: float
    display_days: float
    hours_per_day: float
    net_days: float
    net_days_display: float
    display: str
    permission_days_recorded: float
    raw_permission_hours: float
    permission_days_for_calc: float
    permission_hours_balance: float
    tardiness_minutes: float
    absence_days: float
    worked_days: float
    penalty_days: float


class EntrySummary(CamelModel):
    entry_id: Optional[int] = None
    employee_id: int
    employee_name: str = ""
    area: str = DEFAULT_AREA
    remuneration: float
    monthly_base: float
    prorated_base: float
    overtime: float
    holiday_bonus: float
    weekend_sunday_bonus: float
    weekend_sunday_days: float
    manual_bonuses: float
    absence: float
    permission: float
    tardiness: float
    manual_deductions: float
    manual_advances: float
    actual_deductions: float
    pension_amount: float
    health_amount: float
    net_pay: float
    start_date: Optional[date] = None
    days_display: str
    worked_days: float
    absence_days: float
    tardiness_minutes: float
    permission_days_recorded: float
    permission_hours: float
    holiday_days: float
    eligibility: EligibilityInfo
    day_info: DayInfo


class PeriodTotals(CamelModel):
    base: float = 0.0
    holidays: float = 0.0
    extras: float = 0.0
    bonuses: float = 0.0
    deductions: float = 0.0
    pensions: float = 0.0
    advances: float = 0.0
    net: float = 0.0


class SummaryStat(CamelModel):
    key: str
    label: str
    value: float


class AreaReportRow(CamelModel):
    entry: PayrollEntry
    summary: EntrySummary


class AreaReport(CamelModel):
    area: str = AREA_ALL
    rows: List[AreaReportRow] = Field(default_factory=list)
    net_total: float = 0.0


class PayslipLine(CamelModel):
    label: str
    detail: str
    amount: float


class Payslip(CamelModel):
    entry_id: Optional[int] = None
    employee_id: int
    employee_name: str
    period_label: str
    start_date: Optional[date] = None
    paid_days_line: str
    eligible_days_line: str
    earnings: List[PayslipLine]
    deductions: List[PayslipLine]
    total_earnings: float
    total_deductions: float
    net_pay: float


class ExtrasTotals(CamelModel):
    advances: float = 0.0
    holidays: float = 0.0
    overtime: float = 0.0
    bonuses: float = 0.0


class AccumulationMonth(CamelModel):
    id: int
    label: str


class AccumulationRow(CamelModel):
    employee_id: int
    employee: Optional[Employee] = None
    employee_name: str = ""
    area: str = DEFAULT_AREA
    per_month: List[float]
    per_month_paid: List[float]
    per_month_deductions: List[float]
    total: float = 0.0
    total_paid: float = 0.0
    total_deductions: float = 0.0
    account: str = "—"
    cci: str = "—"
    yape_plin: str = "—"
    bank: str = "—"
    has_account: bool = False
    paid: bool = Field(False, description="累計金額是否已發放（外部付款狀態）")


class AccumulationTotals(CamelModel):
    employees: int = 0
    month_totals: List[float] = Field(default_factory=list)
    month_totals_paid: List[float] = Field(default_factory=list)
    month_totals_deductions: List[float] = Field(default_factory=list)
    total: float = 0.0
    total_paid: float = 0.0
    total_deductions: float = 0.0


class PaymentSplit(CamelModel):
    paid: AccumulationTotals
    pending: AccumulationTotals


class AccumulationSummary(CamelModel):
    ready: bool
    months: List[AccumulationMonth] = Field(default_factory=list)
    rows: List[AccumulationRow] = Field(default_factory=list)
    month_totals: List[float] = Field(default_factory=list)
    month_totals_paid: List[float] = Field(default_factory=list)
    month_totals_deductions: List[float] = Field(default_factory=list)
    month_deduction_breakdown: List[DeductionBreakdown] = Field(default_factory=list)
    total_deduction_breakdown: DeductionBreakdown = Field(default_factory=DeductionBreakdown)
    month_advances: List[float] = Field(default_factory=list)
    month_holidays: List[float] = Field(default_factory=list)
    month_bonuses: List[float] = Field(default_factory=list)
    month_overtime: List[float] = Field(default_factory=list)
    total: float = 0.0
    total_paid: float = 0.0
    total_deductions: float = 0.0
    total_advances: float = 0.0
    total_holidays: float = 0.0
    total_bonuses: float = 0.0
    total_overtime: float = 0.0
    area_extras: Dict[str, ExtrasTotals] = Field(default_factory=dict)
    area_totals: Dict[str, AccumulationTotals] = Field(default_factory=dict)
    payment_split: Dict[str, PaymentSplit] = Field(default_factory=dict)


class AccumulationView(CamelModel):
    months: List[AccumulationMonth] = Field(default_factory=list)
    rows: List[AccumulationRow] = Field(default_factory=list)
    month_totals: List[float] = Field(default_factory=list)
    month_totals_paid: List[float] = Field(default_factory=list)
    month_totals_deductions: List[float] = Field(default_factory=list)
    total: float = 0.0
    total_paid: float = 0.0
    total_deductions: float = 0.0


# ---------- API 請求/回應 ----------
class EntryComputeRequest(CamelModel):
    period: PayrollPeriod
    employee: Employee
    attendance: List[AttendanceRecord] = Field(default_factory=list)
    adjustments: List[Adjustment] = Field(default_factory=list)
    recalc_closed: bool = Field(False, description="已結算期間是否允許重算")


class PayslipRequest(CamelModel):
    period: PayrollPeriod
    entry: PayrollEntry


class PeriodSummaryRequest(CamelModel):
    period: PayrollPeriod
    entries: List[PayrollEntry] = Field(default_factory=list)
    area: str = AREA_ALL


class PeriodSummaryResponse(CamelModel):
    summaries: List[EntrySummary]
    totals: PeriodTotals
    stats: List[SummaryStat]
    area_net_total: float


class AccumulationRequest(CamelModel):
    periods: List[PayrollPeriod]
    # 期間 id → 已取得之薪資單；缺 key 或 None 表示尚未取得
    details: Dict[int, Optional[List[PayrollEntry]]] = Field(default_factory=dict)
    employees: List[Employee] = Field(default_factory=list)
    payments: Dict[int, bool] = Field(default_factory=dict)
    area: str = AREA_ALL
    payment_filter: str = "ALL"
    account_filter: str = "ALL"


class AccumulationResponse(CamelModel):
    summary: AccumulationSummary
    view: AccumulationView
