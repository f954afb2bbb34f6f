import random
import sqlite3
from unittest.mock import patch

import pytest

from chapas.domain.errors import AcessoNegado, EntradaInvalida, EstoqueInsuficiente, FalhaReconciliacao
from chapas.infra.db import connect
from chapas.infra.repositories import ChapaRepo, MovimentacaoRepo
from chapas.usecases.registrar_movimentacao import (
    registrar_movimentacao,
    run_entrada,
    run_movimentacao,
    run_saida,
)


def test_cadastro_guarda_peso_total(db, chapa):
    salva = ChapaRepo(db).get(chapa.id)
    assert salva.quantidade == 10
    assert salva.peso == pytest.approx(864.0)
    assert salva.unidade == "UN"


def test_saida_parcial_reduz_quantidade_e_peso(db, chapa, operador):
    res = run_saida("CH-001", 4, ator=operador, db_path=db)
    assert res.peso_movimentado == pytest.approx(345.6)
    assert res.chapa.quantidade == 6
    assert res.chapa.peso == pytest.approx(518.4)

    salva = ChapaRepo(db).get(chapa.id)
    assert salva.quantidade == 6
    assert salva.peso == pytest.approx(518.4)
    assert salva.updated_at is not None

    movs = MovimentacaoRepo(db).listar(chapa_id=chapa.id)
    assert len(movs) == 1
    assert movs[0].tipo == "saida"
    assert movs[0].quantidade == 4
    assert movs[0].usuario_id == operador.id


def test_saida_maior_que_saldo_e_rejeitada_sem_gravar(db, chapa, operador):
    run_saida("CH-001", 4, ator=operador, db_path=db)
    with pytest.raises(EstoqueInsuficiente) as exc:
        run_saida("CH-001", 10, ator=operador, db_path=db)
    assert exc.value.disponivel == 6
    assert str(exc.value) == "Apenas 6 unidades disponíveis em estoque."

    assert MovimentacaoRepo(db).count(chapa_id=chapa.id) == 1
    salva = ChapaRepo(db).get(chapa.id)
    assert salva.quantidade == 6
    assert salva.peso == pytest.approx(518.4)


def test_entrada_usa_peso_medio(db, chapa, controlador):
    res = run_entrada(chapa.id, "5", "reposição", ator=controlador, db_path=db)
    assert res.peso_movimentado == pytest.approx(432.0)
    assert res.chapa.quantidade == 15
    assert res.chapa.peso == pytest.approx(1296.0)
    assert MovimentacaoRepo(db).get(res.movimentacao.id).observacao == "reposição"


def test_operador_nao_registra_entrada(db, chapa, operador):
    with pytest.raises(AcessoNegado):
        run_entrada("CH-001", 1, ator=operador, db_path=db)
    assert MovimentacaoRepo(db).count() == 0


def test_sem_usuario_nao_movimenta(db, chapa):
    with pytest.raises(AcessoNegado):
        run_saida("CH-001", 1, ator=None, db_path=db)


@pytest.mark.parametrize("qtd", [0, -3, "2.5", "", None, "²", "+-4"])
def test_quantidade_invalida_nao_grava(db, chapa, controlador, qtd):
    with pytest.raises(EntradaInvalida):
        run_movimentacao("CH-001", "saida", qtd, ator=controlador, db_path=db)
    assert MovimentacaoRepo(db).count() == 0


def test_chapa_inexistente(db, controlador):
    with pytest.raises(EntradaInvalida, match="não encontrada"):
        run_saida("NAO-EXISTE", 1, ator=controlador, db_path=db)


def test_saldo_nunca_fica_negativo(db, chapa, controlador):
    rng = random.Random(1234)
    for _ in range(60):
        tipo = rng.choice(["entrada", "saida"])
        qtd = rng.randint(1, 8)
        try:
            run_movimentacao("CH-001", tipo, qtd, ator=controlador, db_path=db)
        except EstoqueInsuficiente:
            pass
        atual = ChapaRepo(db).get(chapa.id)
        assert atual.quantidade >= 0
        assert atual.peso >= 0


def test_saldo_bate_com_ledger(db, chapa, controlador):
    rng = random.Random(99)
    for _ in range(30):
        tipo = rng.choice(["entrada", "saida"])
        try:
            run_movimentacao("CH-001", tipo, rng.randint(1, 5), ator=controlador, db_path=db)
        except EstoqueInsuficiente:
            pass
    movs = MovimentacaoRepo(db).listar(chapa_id=chapa.id)
    saldo = 10 + sum(m.sinal * m.quantidade for m in movs)
    assert ChapaRepo(db).get(chapa.id).quantidade == saldo


def test_chapa_zerada_perde_peso_unitario(db, chapa, controlador):
    run_saida("CH-001", 10, ator=controlador, db_path=db)
    res = run_entrada("CH-001", 3, ator=controlador, db_path=db)
    # sem saldo não há peso médio: a entrada soma unidades com 0 kg
    assert res.chapa.quantidade == 3
    assert res.chapa.peso == 0.0
    assert res.peso_movimentado == 0.0


def test_falha_na_atualizacao_mantem_movimentacao(db, chapa, controlador):
    with patch.object(ChapaRepo, "atualizar_agregado", side_effect=sqlite3.OperationalError("database is locked")):
        with pytest.raises(FalhaReconciliacao) as exc:
            run_saida("CH-001", 2, ator=controlador, db_path=db)

    mov = MovimentacaoRepo(db).get(exc.value.movimentacao_id)
    assert mov is not None
    assert mov.quantidade == 2
    assert exc.value.chapa_id == chapa.id
    assert "Atualize" in str(exc.value)
    assert ChapaRepo(db).get(chapa.id).quantidade == 10


def test_snapshot_desatualizado_nao_sobrescreve(db, chapa, controlador):
    antiga = ChapaRepo(db).get(chapa.id)
    run_saida("CH-001", 3, ator=controlador, db_path=db)  # outra sessão

    with pytest.raises(FalhaReconciliacao):
        registrar_movimentacao(antiga, "saida", 2, None, controlador, db_path=db)

    atual = ChapaRepo(db).get(chapa.id)
    assert atual.quantidade == 7
    assert atual.peso == pytest.approx(604.8)
    assert MovimentacaoRepo(db).count(chapa_id=chapa.id) == 2


def test_ledger_grava_antes_do_saldo(db, chapa, controlador):
    ordem = []
    original_insert = MovimentacaoRepo.insert
    original_update = ChapaRepo.atualizar_agregado

    def insert(self, row):
        ordem.append("ledger")
        return original_insert(self, row)

    def update(self, *args, **kwargs):
        ordem.append("saldo")
        return original_update(self, *args, **kwargs)

    with patch.object(MovimentacaoRepo, "insert", insert), patch.object(ChapaRepo, "atualizar_agregado", update):
        run_saida("CH-001", 1, ator=controlador, db_path=db)
    assert ordem == ["ledger", "saldo"]


def test_movimentacoes_somem_com_a_chapa(db, chapa, controlador):
    run_saida("CH-001", 1, ator=controlador, db_path=db)
    run_entrada("CH-001", 2, ator=controlador, db_path=db)
    ChapaRepo(db).delete(chapa.id)
    with connect(db) as c:
        n = c.execute("SELECT COUNT(*) FROM movimentacao").fetchone()[0]
    assert n == 0


def test_chapa_removida_antes_do_registro(db, chapa, controlador):
    ChapaRepo(db).delete(chapa.id)
    with pytest.raises(EntradaInvalida, match="não encontrada"):
        registrar_movimentacao(chapa, "saida", 1, None, controlador, db_path=db)
    assert MovimentacaoRepo(db).count() == 0
