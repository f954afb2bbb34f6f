# chapas/adapters/exportadores.py
"""
Codificadores de exportação: a mesma lista de linhas (dicts de coluna ->
texto) vira CSV, planilha XLSX ou PDF.

- renderizar(): escolhe o codificador pelo formato e devolve um
  ``Artefato`` (nome do arquivo, bytes, mime) ou ``None`` se não há linhas.
- salvar_artefato(): grava o artefato em disco.

Os codificadores não consultam o banco; o escopo (filtrado/todos) e o
período já vêm resolvidos pelo caso de uso.
"""

from __future__ import annotations

import io
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from chapas.domain.errors import EntradaInvalida

Linhas = Sequence[Dict[str, str]]

FORMATO_CSV = "csv"
FORMATO_XLSX = "xlsx"
FORMATO_PDF = "pdf"
FORMATOS = (FORMATO_CSV, FORMATO_XLSX, FORMATO_PDF)

MIME = {
    FORMATO_CSV: "text/csv; charset=utf-8",
    FORMATO_XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FORMATO_PDF: "application/pdf",
}


@dataclass(frozen=True)
class Artefato:
    nome_arquivo: str
    conteudo: bytes
    mime: str


def _colunas(linhas: Linhas) -> List[str]:
    return list(linhas[0].keys())


def _dataframe(linhas: Linhas) -> pd.DataFrame:
    return pd.DataFrame(list(linhas), columns=_colunas(linhas)).fillna("")


# ---------------------------
# CSV
# ---------------------------

def render_csv(linhas: Linhas) -> bytes:
    """CSV UTF-8 separado por vírgula; campos com vírgula/aspas vão entre aspas."""
    texto = _dataframe(linhas).to_csv(index=False, lineterminator="\n")
    return texto.encode("utf-8")


# ---------------------------
# XLSX
# ---------------------------

_ABA_INVALIDA = re.compile(r"[\[\]:*?/\\]")


def nome_aba(titulo: str) -> str:
    """Nome de aba aceito pelo Excel (sem ``[]:*?/\\`` e até 31 caracteres)."""
    s = _ABA_INVALIDA.sub(" ", titulo or "").strip()[:31].strip()
    return s or "Planilha"


def render_xlsx(linhas: Linhas, aba: str) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        _dataframe(linhas).to_excel(writer, sheet_name=nome_aba(aba), index=False)
    return buf.getvalue()


# ---------------------------
# PDF
# ---------------------------

_COR_CABECALHO = (30, 50, 70)
_COR_ZEBRA = (240, 240, 240)
_ALTURA_LINHA = 7


def _latin1(texto: str) -> str:
    # fontes nativas do fpdf (Helvetica) só cobrem latin-1
    return str(texto).encode("latin-1", "replace").decode("latin-1")


def _alinhamento(coluna: str) -> str:
    return "C" if coluna.startswith(("Quantidade", "Peso")) else "L"


class _RelatorioPdf(FPDF):
    """Página A4 paisagem com numeração no rodapé."""

    def footer(self) -> None:
        self.set_y(-12)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(120, 120, 120)
        self.cell(0, 5, f"Página {self.page_no()}/{{nb}}", align="R")


def _cabe(pdf: FPDF, texto: str, largura: float) -> str:
    if pdf.get_string_width(texto) <= largura - 2:
        return texto
    while texto and pdf.get_string_width(texto + "...") > largura - 2:
        texto = texto[:-1]
    return texto + "..."


def _cabecalho_tabela(pdf: FPDF, colunas: List[str], larguras: List[float]) -> None:
    pdf.set_font("Helvetica", "B", 9)
    pdf.set_fill_color(*_COR_CABECALHO)
    pdf.set_text_color(255, 255, 255)
    for col, w in zip(colunas, larguras):
        pdf.cell(w, _ALTURA_LINHA + 1, _cabe(pdf, _latin1(col), w), border=1, fill=True, align="C")
    pdf.ln()
    pdf.set_text_color(0, 0, 0)
    pdf.set_font("Helvetica", "", 8)


def render_pdf(linhas: Linhas, titulo: str, gerado_em: Optional[datetime] = None) -> bytes:
    gerado_em = gerado_em or datetime.now()
    colunas = _colunas(linhas)

    pdf = _RelatorioPdf(orientation="L", unit="mm", format="A4")
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _latin1(titulo), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, _latin1(f"Gerado em: {gerado_em.strftime('%d/%m/%Y %H:%M')}"),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    larguras = [pdf.epw / len(colunas)] * len(colunas)
    _cabecalho_tabela(pdf, colunas, larguras)

    for idx, linha in enumerate(linhas):
        if pdf.will_page_break(_ALTURA_LINHA):
            pdf.add_page()
            _cabecalho_tabela(pdf, colunas, larguras)
        fill = idx % 2 == 1
        if fill:
            pdf.set_fill_color(*_COR_ZEBRA)
        for col, w in zip(colunas, larguras):
            valor = _cabe(pdf, _latin1(linha.get(col, "") or ""), w)
            pdf.cell(w, _ALTURA_LINHA, valor, border=1, fill=fill, align=_alinhamento(col))
        pdf.ln()

    return bytes(pdf.output())


# ---------------------------
# API pública
# ---------------------------

def renderizar(
    linhas: Linhas,
    formato: str,
    titulo: str,
    nome_base: str,
    aba: Optional[str] = None,
    gerado_em: Optional[datetime] = None,
) -> Optional[Artefato]:
    """Codifica ``linhas`` no ``formato`` pedido.

    Sem linhas não há artefato: retorna ``None`` (não é erro).

    Raises:
        EntradaInvalida: formato desconhecido.
    """
    fmt = (formato or "").strip().lower()
    if fmt not in FORMATOS:
        raise EntradaInvalida(f"Formato de exportação inválido: {formato!r}")
    if not linhas:
        return None

    encoders: Dict[str, Callable[[], bytes]] = {
        FORMATO_CSV: lambda: render_csv(linhas),
        FORMATO_XLSX: lambda: render_xlsx(linhas, aba or titulo),
        FORMATO_PDF: lambda: render_pdf(linhas, titulo, gerado_em),
    }
    return Artefato(nome_arquivo=f"{nome_base}.{fmt}", conteudo=encoders[fmt](), mime=MIME[fmt])


def salvar_artefato(artefato: Artefato, destino: str) -> str:
    """Grava o artefato dentro do diretório ``destino``; retorna o caminho."""
    os.makedirs(destino, exist_ok=True)
    path = os.path.join(destino, artefato.nome_arquivo)
    with open(path, "wb") as f:
        f.write(artefato.conteudo)
    return path
