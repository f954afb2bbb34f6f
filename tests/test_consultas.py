from datetime import datetime, timedelta

import pytest

from chapas.infra.repositories import MovimentacaoRepo
from chapas.usecases.consultas import (
    USUARIO_DESCONHECIDO,
    estatisticas,
    filtrar_chapas,
    historico,
    linhas_chapas,
    linhas_movimentacoes,
    listar_chapas,
)
from chapas.usecases.gerenciar_chapas import run_cadastro
from chapas.usecases.registrar_movimentacao import run_entrada, run_saida


def _mov(db, chapa_id, tipo, qtd, quando, usuario_id=None):
    return MovimentacaoRepo(db).insert({
        "chapa_id": chapa_id, "tipo": tipo, "quantidade": qtd,
        "usuario_id": usuario_id, "created_at": quando.isoformat(timespec="microseconds"),
    })


def test_catalogo_ordenado_e_busca(db, chapa, controlador):
    run_cadastro("AB-100", "Chapa galvanizada", 2, 1000, 2000, ator=controlador, db_path=db)
    chapas = listar_chapas(db)
    assert [c.codigo for c in chapas] == ["AB-100", "CH-001"]
    assert [c.codigo for c in filtrar_chapas(chapas, "galva")] == ["AB-100"]
    assert [c.codigo for c in filtrar_chapas(chapas, "ch-")] == ["CH-001"]
    assert len(filtrar_chapas(chapas, "CHAPA")) == 2
    assert len(filtrar_chapas(chapas, "")) == 2


def test_historico_mais_recentes_primeiro(db, chapa, controlador):
    run_saida("CH-001", 4, ator=controlador, db_path=db)
    run_entrada("CH-001", 2, ator=controlador, db_path=db)
    movs = historico("todos", db_path=db)
    assert [m["tipo"] for m in movs] == ["entrada", "saida"]
    assert movs[0]["codigo"] == "CH-001"
    assert movs[0]["usuario"] == "Ana"
    # peso médio atual: 691.2 / 8 = 86.4
    assert movs[0]["peso"] == pytest.approx(172.8)
    assert movs[1]["peso"] == pytest.approx(-345.6)


def test_historico_filtra_por_periodo(db, chapa):
    agora = datetime(2024, 6, 12, 10, 0)
    _mov(db, chapa.id, "saida", 1, agora - timedelta(hours=2))
    _mov(db, chapa.id, "saida", 1, agora - timedelta(days=2))     # segunda-feira, mesma semana
    _mov(db, chapa.id, "entrada", 1, agora - timedelta(days=20))  # maio

    assert len(historico("hoje", agora=agora, db_path=db)) == 1
    assert len(historico("semana", agora=agora, db_path=db)) == 2
    assert len(historico("mes", agora=agora, db_path=db)) == 2
    assert len(historico("todos", agora=agora, db_path=db)) == 3


def test_historico_respeita_teto(db, chapa):
    agora = datetime(2024, 6, 12, 10, 0)
    for i in range(25):
        _mov(db, chapa.id, "entrada", 1, agora - timedelta(minutes=i))
    assert len(historico("hoje", agora=agora, db_path=db)) == 20
    assert len(historico("hoje", agora=agora, limite=5, db_path=db)) == 5
    assert len(historico("hoje", agora=agora, sem_limite=True, db_path=db)) == 25


def test_historico_sem_usuario(db, chapa):
    _mov(db, chapa.id, "saida", 1, datetime.now())
    movs = historico("todos", db_path=db)
    assert movs[0]["usuario"] == USUARIO_DESCONHECIDO


def test_estatisticas_do_mes(db, chapa, controlador):
    agora = datetime.now()
    run_saida("CH-001", 3, ator=controlador, db_path=db)
    run_entrada("CH-001", 5, ator=controlador, db_path=db)
    inicio_mes = agora.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    _mov(db, chapa.id, "entrada", 100, inicio_mes - timedelta(days=1))  # mês anterior

    s = estatisticas(agora=agora, db_path=db)
    assert s.total_chapas == 1
    assert s.total_quantidade == 12
    assert s.entradas_mes == 5
    assert s.saidas_mes == 3


def test_linhas_de_exportacao_de_chapas(chapa):
    [linha] = linhas_chapas([chapa])
    assert linha == {
        "Código": "CH-001",
        "Descrição": "Chapa 3mm",
        "Dimensões (mm)": "3 x 1000 x 2000",
        "Quantidade": "10 UN",
        "Peso Total (kg)": "864.00",
        "Localização": "-",
    }


def test_linhas_de_exportacao_de_movimentacoes():
    movs = [
        {"created_at": "2024-06-12T08:05:00", "tipo": "saida", "codigo": "CH-001",
         "descricao": "Chapa 3mm", "quantidade": 4, "peso": -345.6, "usuario": "Ana"},
        {"created_at": "2024-06-12T09:00:00", "tipo": "entrada", "codigo": "CH-001",
         "descricao": "Chapa 3mm", "quantidade": 1, "peso": 86.4, "usuario": None},
    ]
    saida, entrada = linhas_movimentacoes(movs)
    assert list(saida) == ["Data / Hora", "Tipo", "Código", "Descrição", "Quantidade", "Peso (kg)", "Usuário"]
    assert saida["Tipo"] == "Saída"
    assert saida["Quantidade"] == "-4"
    assert saida["Peso (kg)"] == "-345.60"
    assert saida["Data / Hora"] == "12/06/2024 08:05"
    assert entrada["Quantidade"] == "+1"
    assert entrada["Peso (kg)"] == "+86.40"
    assert entrada["Usuário"] == USUARIO_DESCONHECIDO
