from pathlib import Path

import pandas as pd

from chapas.adapters.planilhas import _normalize_columns, load_movimentacoes_from_xlsx
from chapas.infra.repositories import ChapaRepo, MovimentacaoRepo
from chapas.usecases.registrar_movimentacao import run_movimentacao_lote


def _xlsx(tmp_path: Path, dados) -> str:
    path = tmp_path / "movimentacoes.xlsx"
    pd.DataFrame(dados).to_excel(path, index=False)
    return str(path)


def test_normalize_columns_sinonimos():
    df = pd.DataFrame({"Cód.": ["CH-001"], "Movimento": ["saida"], "Qtde": ["2"], "Obs": ["x"]})
    assert list(_normalize_columns(df).columns) == ["codigo", "tipo", "quantidade", "observacao"]


def test_load_movimentacoes(tmp_path):
    path = _xlsx(tmp_path, {
        "Código": ["CH-001", "CH-002", None],
        "Tipo": ["Saída", "ENTRADA", "saida"],
        "Quantidade": ["4 UN - Unidades", "2", "1,5"],
        "Observação": ["corte", None, None],
    })
    rows = load_movimentacoes_from_xlsx(path)
    assert rows[0] == {"codigo": "CH-001", "tipo": "saída", "quantidade": 4, "observacao": "corte"}
    assert rows[1]["tipo"] == "entrada"
    assert rows[1]["quantidade"] == 2
    assert rows[1]["observacao"] is None
    assert rows[2]["codigo"] is None
    assert rows[2]["quantidade"] is None


def test_lote_registra_linhas_validas_e_relata_erros(db, chapa, controlador, tmp_path):
    path = _xlsx(tmp_path, {
        "Código": ["CH-001", "CH-001", "CH-999", "CH-001", None],
        "Tipo": ["saida", "entrada", "saida", "saida", "saida"],
        "Quantidade": ["4", "1", "1", "50", "1"],
    })
    info = run_movimentacao_lote(path, ator=controlador, db_path=db)
    assert info["total"] == 5
    assert info["sucessos"] == 2
    assert [e["linha"] for e in info["erros"]] == [4, 5, 6]
    assert "Apenas 7 unidades" in info["erros"][1]["mensagem"]
    assert ChapaRepo(db).get(chapa.id).quantidade == 7
    assert MovimentacaoRepo(db).count() == 2
