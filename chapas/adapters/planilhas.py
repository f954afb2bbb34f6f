# chapas/adapters/planilhas.py
"""
Loader para planilhas (XLSX) de MOVIMENTAÇÕES em lote.

Esta função:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna uma lista de dicionários com as chaves esperadas pelo caso de uso.

Observações:
- A quantidade aceita o formato "4 UN - Unidades"; frações viram None e são
  rejeitadas na validação da movimentação.
- O tipo é normalizado para minúsculas; a validação fica com a política.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import pandas as pd

from chapas.adapters.parsers import parse_quantidade_raw


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key):
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    return val


_ALIASES = {
    "codigo": "codigo",
    "cod": "codigo",
    "codigo chapa": "codigo",
    "chapa": "codigo",

    "tipo": "tipo",
    "movimento": "tipo",
    "movimentacao": "tipo",
    "operacao": "tipo",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",

    "observacao": "observacao",
    "observacoes": "observacao",
    "obs": "observacao",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {col: _ALIASES.get(_slug(col), _slug(col)) for col in df.columns}
    return df.rename(columns=new_cols)


def _texto(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_movimentacoes_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de movimentações e retorna um dict por linha.

    Campos de saída:
      - codigo: str | None
      - tipo: str | None  ("entrada", "saida", "saída"...)
      - quantidade: int | None
      - observacao: str | None
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        qtd, _unidade = parse_quantidade_raw(_safe_get(row, "quantidade"))
        tipo = _texto(_safe_get(row, "tipo"))
        out.append({
            "codigo": _texto(_safe_get(row, "codigo")),
            "tipo": tipo.lower() if tipo else None,
            "quantidade": qtd,
            "observacao": _texto(_safe_get(row, "observacao")),
        })
    return out
