"""
Testes da interface de terminal.

Os widgets são apenas construídos; a lógica de exibição fica nas funções
puras testadas abaixo.
"""

from datetime import datetime

from chapas.adapters.tui import (
    COLUNAS_CHAPAS,
    COLUNAS_HISTORICO,
    ChapasApp,
    MovimentacaoForm,
    acoes_permitidas,
    linhas_tabela_chapas,
    linhas_tabela_historico,
)
from chapas.domain.periodos import PERIODO_TODOS
from chapas.usecases.consultas import historico, listar_chapas
from chapas.usecases.registrar_movimentacao import run_saida


class TestConstrucao:
    def test_app(self, db, controlador):
        app = ChapasApp(db_path=db, ator=controlador, atraso=0)
        assert app.periodo == PERIODO_TODOS
        assert app.ator is controlador
        assert not app.atualizador.ativo

    def test_form(self, chapa):
        form = MovimentacaoForm("saida", chapa)
        assert form.tipo == "saida"
        assert form.chapa.codigo == "CH-001"


class TestLinhas:
    def test_linhas_de_chapas(self, db, chapa):
        [linha] = linhas_tabela_chapas(listar_chapas(db))
        assert len(linha) == len(COLUNAS_CHAPAS)
        assert linha == ["CH-001", "Chapa 3mm", "3 x 1000 x 2000", "10 UN", "864.00", "-", "OK"]

    def test_linhas_de_historico(self, db, chapa, operador):
        run_saida("CH-001", 4, ator=operador, db_path=db)
        [linha] = linhas_tabela_historico(historico(PERIODO_TODOS, db_path=db))
        assert len(linha) == len(COLUNAS_HISTORICO)
        assert linha[1:] == ["Saída", "CH-001", "-4", "-345.60", "Beto"]
        datetime.strptime(linha[0], "%d/%m/%Y %H:%M")


class TestAcoes:
    def test_controlador_tem_as_duas(self, controlador, chapa):
        assert acoes_permitidas(controlador, chapa) == ["entrada", "saida"]

    def test_operador_so_saida(self, operador, chapa):
        assert acoes_permitidas(operador, chapa) == ["saida"]

    def test_operador_sem_saldo(self, operador, chapa):
        assert acoes_permitidas(operador, chapa.com_saldo(0, 0.0)) == []

    def test_sem_usuario_ou_chapa(self, controlador, chapa):
        assert acoes_permitidas(None, chapa) == []
        assert acoes_permitidas(controlador, None) == []
