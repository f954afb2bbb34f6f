"""
Utilidades de parsing e formatação de valores digitados ou lidos de
planilhas.

Este módulo interpreta números no formato brasileiro ou internacional
("1.234,5", "86,4", "86.4"), quantidades com unidade ("4 UN - Unidades")
e formata pesos e datas para exibição.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional, Tuple

_NUM_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)*")


def parse_decimal(txt: Any) -> Optional[float]:
    """Converte texto numérico em float.

    Aceita vírgula ou ponto como separador decimal. Quando ambos aparecem,
    o último é o decimal e o outro é separador de milhar.

    Exemplos:
        "86,4"      → 86.4
        "1.234,56"  → 1234.56
        "1,234.56"  → 1234.56
        "abc"       → None
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)) and not isinstance(txt, bool):
        return float(txt)
    s = str(txt).strip().replace(" ", "")
    if not s:
        return None
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    try:
        return float(s)
    except ValueError:
        return None


def parse_quantidade_raw(txt: Any) -> Tuple[Optional[int], Optional[str]]:
    """Interpreta uma quantidade inteira com unidade opcional.

    A string geralmente segue o padrão "<valor> <unidade> - <descrição>".

    Exemplos:
        "4 UN - Unidades" → (4, "UN")
        "10"              → (10, None)
        "2,5 UN"          → (None, "UN")   # fração não é quantidade válida

    Returns:
        Uma tupla (numero, unidade); qualquer parte indeterminada é None.
    """
    if txt is None:
        return None, None
    if isinstance(txt, int) and not isinstance(txt, bool):
        return txt, None
    if isinstance(txt, float):
        return (int(txt), None) if txt.is_integer() else (None, None)
    s = str(txt).strip()
    if not s:
        return None, None
    head = s.split("-", 1)[0].strip() if not s.startswith("-") else s
    parts = head.split()
    num = None
    unidade = None
    if parts:
        m = _NUM_RE.fullmatch(parts[0])
        if m:
            val = parse_decimal(m.group(0))
            if val is not None and float(val).is_integer():
                num = int(val)
    if len(parts) >= 2 and parts[1].strip():
        unidade = parts[1].strip().upper()
    return num, unidade


def fmt_kg(valor: Optional[float], sinal: str = "") -> str:
    """Formata peso com duas casas: ``fmt_kg(518.4) → '518.40'``."""
    if valor is None:
        return ""
    return f"{sinal}{float(valor):.2f}"


def fmt_data_hora(valor: Any) -> str:
    """Converte ISO 8601 (ou datetime) em ``dd/mm/aaaa HH:MM``."""
    if valor is None or valor == "":
        return ""
    if isinstance(valor, datetime):
        dt = valor
    else:
        try:
            dt = datetime.fromisoformat(str(valor))
        except ValueError:
            return str(valor)
    return dt.strftime("%d/%m/%Y %H:%M")
