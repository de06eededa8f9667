"""
下載檔名標頭：RFC 5987 Content-Disposition，支援西文重音檔名（Planilla_Área_operativa.xlsx）。
Starlette 的 header 僅支援 latin-1，filename 放去除重音之 ASCII 版本，filename* 放 UTF-8 原名。
"""
import re
import unicodedata
from urllib.parse import quote

_UNSAFE_ASCII = re.compile(r'[^A-Za-z0-9._-]+')


def ascii_filename(name: str) -> str:
    """去除重音並以底線取代空白與特殊字元（Área operativa → Area_operativa）"""
    normalized = unicodedata.normalize("NFKD", name)
    stripped = normalized.encode("ascii", "ignore").decode("ascii")
    cleaned = _UNSAFE_ASCII.sub("_", stripped).strip("_")
    return cleaned or "download"


def build_content_disposition(unicode_filename: str) -> str:
    """
    組出 Content-Disposition 字串。

    範例：
        build_content_disposition("Acumulado_Área_operativa.xlsx")
        → attachment; filename="Acumulado_Area_operativa.xlsx"; filename*=UTF-8''Acumulado_%C3%81rea_operativa.xlsx
    """
    ascii_part = f'attachment; filename="{ascii_filename(unicode_filename)}"'
    encoded = quote(unicode_filename, safe="")
    return f"{ascii_part}; filename*=UTF-8''{encoded}"
