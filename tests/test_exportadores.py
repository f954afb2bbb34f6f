import io
import zlib
from datetime import datetime

import pytest
from openpyxl import load_workbook

from chapas.adapters.exportadores import (
    Artefato,
    nome_aba,
    render_csv,
    renderizar,
    salvar_artefato,
)
from chapas.domain.errors import EntradaInvalida
from chapas.usecases.consultas import linhas_chapas


def _extract_pdf_text(pdf_bytes: bytes) -> str:
    """Descomprime os streams FlateDecode do PDF e junta o texto."""
    texts = [pdf_bytes.decode("latin-1")]
    start_marker, end_marker = b"stream\n", b"\nendstream"
    idx = 0
    while True:
        s = pdf_bytes.find(start_marker, idx)
        if s == -1:
            break
        s += len(start_marker)
        e = pdf_bytes.find(end_marker, s)
        if e == -1:
            break
        try:
            texts.append(zlib.decompress(pdf_bytes[s:e]).decode("latin-1", errors="replace"))
        except zlib.error:
            pass
        idx = e + len(end_marker)
    return "\n".join(texts)


LINHAS = [
    {"Código": "CH-001", "Descrição": "Chapa 3mm", "Quantidade": "10 UN", "Peso Total (kg)": "864.00"},
    {"Código": "CH-002", "Descrição": "Chapa, xadrez \"antiderrapante\"", "Quantidade": "2 UN",
     "Peso Total (kg)": "301.00"},
]


@pytest.mark.parametrize("formato", ["csv", "xlsx", "pdf"])
def test_sem_linhas_nao_gera_artefato(formato):
    assert renderizar([], formato, "Estoque de Chapas", "estoque") is None


def test_formato_invalido():
    with pytest.raises(EntradaInvalida):
        renderizar(LINHAS, "docx", "Estoque", "estoque")


def test_csv_de_uma_chapa(chapa):
    art = renderizar(linhas_chapas([chapa]), "csv", "Estoque de Chapas", "estoque_chapas_x")
    assert isinstance(art, Artefato)
    assert art.nome_arquivo == "estoque_chapas_x.csv"
    assert art.mime.startswith("text/csv")
    linhas = art.conteudo.decode("utf-8").strip().split("\n")
    assert len(linhas) == 2
    assert linhas[0] == "Código,Descrição,Dimensões (mm),Quantidade,Peso Total (kg),Localização"
    assert "CH-001" in linhas[1]
    assert linhas[1] == "CH-001,Chapa 3mm,3 x 1000 x 2000,10 UN,864.00,-"


def test_csv_protege_virgulas_e_aspas():
    texto = render_csv(LINHAS).decode("utf-8")
    assert texto.endswith("\n")
    assert "\r" not in texto
    assert '"Chapa, xadrez ""antiderrapante"""' in texto


def test_xlsx_cabecalho_e_linhas():
    art = renderizar(LINHAS, "xlsx", "Relatório de Movimentações - Período: MES", "hist", aba="Movimentações")
    assert art.nome_arquivo == "hist.xlsx"
    wb = load_workbook(io.BytesIO(art.conteudo))
    assert wb.sheetnames == ["Movimentações"]
    ws = wb.active
    headers = [c.value for c in ws[1]]
    assert headers == list(LINHAS[0].keys())
    assert ws.max_row == 3
    assert ws["A2"].value == "CH-001"
    assert ws["B3"].value == LINHAS[1]["Descrição"]


def test_nome_aba():
    aba = nome_aba("Relatório de Movimentações - Período: SEMANA")
    assert aba.startswith("Relatório de Movimentações")
    assert len(aba) <= 31
    assert ":" not in aba
    assert len(nome_aba("x" * 50)) == 31
    assert nome_aba("a/b:c") == "a b c"
    assert nome_aba("") == "Planilha"


def test_pdf_titulo_data_e_linhas():
    quando = datetime(2024, 6, 12, 8, 0)
    art = renderizar(LINHAS, "pdf", "Estoque de Chapas", "estoque", gerado_em=quando)
    assert art.mime == "application/pdf"
    assert art.conteudo.startswith(b"%PDF")
    texto = _extract_pdf_text(art.conteudo)
    assert "Estoque de Chapas" in texto
    assert "Gerado em: 12/06/2024 08:00" in texto
    assert "CH-001" in texto
    assert "CH-002" in texto


def test_pdf_com_muitas_linhas_quebra_pagina():
    linhas = [{"Código": f"CH-{i:03d}", "Quantidade": str(i)} for i in range(120)]
    art = renderizar(linhas, "pdf", "Estoque", "estoque")
    texto = _extract_pdf_text(art.conteudo)
    assert "Página 2/" in texto
    assert "CH-119" in texto


def test_salvar_artefato(tmp_path):
    art = Artefato("teste.csv", b"a,b\n1,2\n", "text/csv")
    path = salvar_artefato(art, str(tmp_path / "saida"))
    with open(path, "rb") as f:
        assert f.read() == b"a,b\n1,2\n"
