"""應用設定與環境變數"""
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings

# 後端專案根目錄（backend/），相對路徑以此為基準，不受工作目錄影響
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    app_name: str = "Obra ERP - Planilla"
    debug: bool = False
    # 未設時依 debug 決定（DEBUG / INFO）
    log_level: Optional[str] = None
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    # 日/時換算：日薪 ÷ 時薪 之比值落在 [min, max]，否則用預設 8 小時
    hours_per_day_default: float = 8
    hours_per_day_min: float = 4
    hours_per_day_max: float = 24
    # 商業月固定 30 天（基準天數預設值）
    standard_month_days: int = 30
    # 累計報表：預設選取月份數、最多可選月份數
    default_accumulation_months: int = 3
    max_accumulation_months: int = 6
    # 週日缺勤扣薪規則檔（相對 backend/ 或絕對路徑）
    payroll_rules_file: Path = Path("config/payroll_rules.yaml")

    class Config:
        env_file = str(BASE_DIR / ".env")

    @property
    def resolved_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.debug else "INFO"

    @property
    def resolved_rules_file(self) -> Path:
        path = self.payroll_rules_file
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


settings = Settings()
