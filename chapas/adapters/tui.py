"""
Interface de terminal (Textual) do estoque de chapas.

Painel com totais, tabela de chapas (com busca) e histórico de
movimentações por período. As tabelas se atualizam sozinhas quando
qualquer escrita passa pelos repositórios (``AtualizadorVisao``).
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Input, Label, Static

from chapas.config import DB_PATH, DEFAULTS, EXPORT_DIR
from chapas.domain.errors import ChapasError
from chapas.domain.models import TIPO_ENTRADA, TIPO_SAIDA, Chapa, Perfil
from chapas.domain.periodos import (
    PERIODO_HOJE, PERIODO_MES, PERIODO_SEMANA, PERIODO_TODOS, rotulo_periodo
)
from chapas.domain.policies import pode_executar
from chapas.adapters.parsers import fmt_data_hora, fmt_kg
from chapas.infra.logger import log_system_event
from chapas.usecases.atualizar_visao import AtualizadorVisao
from chapas.usecases.consultas import (
    estatisticas, filtrar_chapas, historico, listar_chapas, status_chapa
)
from chapas.usecases.exportar import exportar_historico
from chapas.usecases.registrar_movimentacao import run_movimentacao

COLUNAS_CHAPAS = ["Código", "Descrição", "Dimensões (mm)", "Quantidade", "Peso (kg)", "Local", "Status"]
COLUNAS_HISTORICO = ["Data / Hora", "Tipo", "Código", "Quantidade", "Peso (kg)", "Usuário"]


def linhas_tabela_chapas(chapas: List[Chapa]) -> List[List[str]]:
    return [
        [c.codigo, c.descricao, c.dimensoes, f"{c.quantidade} {c.unidade}",
         fmt_kg(c.peso), c.localizacao or "-", status_chapa(c)]
        for c in chapas
    ]


def linhas_tabela_historico(movs: List[Dict[str, Any]]) -> List[List[str]]:
    out = []
    for m in movs:
        sinal = "+" if m["tipo"] == TIPO_ENTRADA else "-"
        out.append([
            fmt_data_hora(m["created_at"]),
            "Entrada" if sinal == "+" else "Saída",
            m["codigo"],
            f"{sinal}{m['quantidade']}",
            fmt_kg(abs(m["peso"]), sinal),
            m["usuario"],
        ])
    return out


def acoes_permitidas(ator: Optional[Perfil], chapa: Optional[Chapa]) -> List[str]:
    """Movimentações oferecidas para a chapa selecionada.

    Operador só vê saída, e só com saldo; controlador vê as duas.
    """
    if ator is None or chapa is None:
        return []
    acoes = []
    if pode_executar(ator.papel, TIPO_ENTRADA):
        acoes.append(TIPO_ENTRADA)
    if pode_executar(ator.papel, TIPO_SAIDA) and chapa.quantidade > 0:
        acoes.append(TIPO_SAIDA)
    return acoes


class MovimentacaoForm(ModalScreen):
    """Modal com quantidade e observação de uma movimentação."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancelar"),
    ]

    def __init__(self, tipo: str, chapa: Chapa) -> None:
        super().__init__()
        self.tipo = tipo
        self.chapa = chapa
        self.qtd_input: Optional[Input] = None
        self.obs_input: Optional[Input] = None

    def compose(self) -> ComposeResult:
        titulo = "Adicionar Chapas" if self.tipo == TIPO_ENTRADA else "Remover Chapas"
        with Container(id="mov-modal"):
            yield Static(f"{titulo} - {self.chapa.codigo}", classes="modal-title")
            with Vertical():
                yield Label(f"Disponível: {self.chapa.quantidade} {self.chapa.unidade}")
                yield Label("Quantidade:")
                self.qtd_input = Input(placeholder="1", id="qtd-input")
                yield self.qtd_input
                yield Label("Observação:")
                self.obs_input = Input(placeholder="opcional", id="obs-input")
                yield self.obs_input
                with Horizontal():
                    yield Button("Confirmar", variant="primary", id="confirm-btn")
                    yield Button("Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "confirm-btn":
            qtd = self.qtd_input.value.strip() if self.qtd_input else ""
            if not qtd:
                self.notify("Informe a quantidade!", severity="warning")
                return
            obs = self.obs_input.value if self.obs_input else ""
            self.dismiss({"tipo": self.tipo, "quantidade": qtd, "observacao": obs})
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class ChapasApp(App):
    """Painel de estoque de chapas."""

    CSS = """
    .modal-title {
        background: #1e3246;
        color: #ffffff;
        text-align: center;
        padding: 1;
        margin-bottom: 1;
    }

    Container#mov-modal {
        background: #112233;
        border: solid #00aaff;
        width: 60;
        height: 22;
        margin: 2;
    }

    #stats {
        background: #1e3246;
        color: #ffffff;
        padding: 0 1;
    }

    .secao {
        text-style: bold;
        margin-top: 1;
    }

    DataTable {
        height: 1fr;
    }
    """

    TITLE = "Estoque de Chapas"
    BINDINGS = [
        ("q", "quit", "Sair"),
        ("r", "refresh", "Atualizar"),
        ("a", "entrada", "Adicionar"),
        ("s", "saida", "Remover"),
        ("1", "periodo('hoje')", "Hoje"),
        ("2", "periodo('semana')", "Semana"),
        ("3", "periodo('mes')", "Mês"),
        ("4", "periodo('todos')", "Todos"),
        ("x", "exportar", "Exportar CSV"),
    ]

    def __init__(
        self,
        db_path: str = DB_PATH,
        ator: Optional[Perfil] = None,
        atraso: float = DEFAULTS.atraso_atualizacao,
    ) -> None:
        super().__init__()
        self.db_path = db_path
        self.ator = ator
        self.periodo = PERIODO_TODOS
        self.busca = ""
        self.chapas: Dict[str, Chapa] = {}
        self.atualizador = AtualizadorVisao(self._recarga_agendada, atraso=atraso)
        self._thread_ui: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="stats")
        yield Input(placeholder="Buscar por código ou descrição...", id="busca")
        yield DataTable(zebra_stripes=True, cursor_type="row", id="chapas")
        yield Static("", id="titulo-historico", classes="secao")
        yield DataTable(zebra_stripes=True, id="historico")
        yield Footer()

    def on_mount(self) -> None:
        self._thread_ui = threading.get_ident()
        self.query_one("#chapas", DataTable).add_columns(*COLUNAS_CHAPAS)
        self.query_one("#historico", DataTable).add_columns(*COLUNAS_HISTORICO)
        if self.ator is not None:
            self.sub_title = f"{self.ator.nome} ({self.ator.papel})"
        self.carregar()
        self.atualizador.iniciar()

    def on_unmount(self) -> None:
        self.atualizador.parar()

    # carga dos dados

    def _recarga_agendada(self) -> None:
        if threading.get_ident() == self._thread_ui:
            self.carregar()
        else:
            self.call_from_thread(self.carregar)

    def carregar(self) -> None:
        chapas = filtrar_chapas(listar_chapas(self.db_path), self.busca)
        self.chapas = {c.id: c for c in chapas}
        tabela = self.query_one("#chapas", DataTable)
        tabela.clear()
        for c, linha in zip(chapas, linhas_tabela_chapas(chapas)):
            tabela.add_row(*linha, key=c.id)

        movs = historico(self.periodo, db_path=self.db_path)
        hist = self.query_one("#historico", DataTable)
        hist.clear()
        for linha in linhas_tabela_historico(movs):
            hist.add_row(*linha)
        self.query_one("#titulo-historico", Static).update(
            f"Histórico de Movimentações - {rotulo_periodo(self.periodo)}"
        )

        s = estatisticas(db_path=self.db_path)
        self.query_one("#stats", Static).update(
            f"Tipos de chapa: {s.total_chapas}  |  Unidades: {s.total_quantidade}  |  "
            f"Entradas no mês: {s.entradas_mes}  |  Saídas no mês: {s.saidas_mes}"
        )

    def chapa_selecionada(self) -> Optional[Chapa]:
        tabela = self.query_one("#chapas", DataTable)
        if tabela.row_count == 0:
            return None
        chave = tabela.coordinate_to_cell_key(tabela.cursor_coordinate).row_key.value
        return self.chapas.get(chave)

    # eventos

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "busca":
            self.busca = event.value
            self.carregar()

    def action_refresh(self) -> None:
        self.atualizador.atualizar_agora()

    def action_periodo(self, tag: str) -> None:
        if tag in (PERIODO_HOJE, PERIODO_SEMANA, PERIODO_MES, PERIODO_TODOS):
            self.periodo = tag
            self.carregar()

    def action_entrada(self) -> None:
        self._abrir_movimentacao(TIPO_ENTRADA)

    def action_saida(self) -> None:
        self._abrir_movimentacao(TIPO_SAIDA)

    def _abrir_movimentacao(self, tipo: str) -> None:
        chapa = self.chapa_selecionada()
        if chapa is None:
            self.notify("Selecione uma chapa.", severity="warning")
            return
        if tipo not in acoes_permitidas(self.ator, chapa):
            self.notify("Operação não disponível para este perfil ou chapa.", severity="warning")
            return
        self.push_screen(MovimentacaoForm(tipo, chapa), self.on_movimentacao_result)

    def on_movimentacao_result(self, result: Optional[Dict[str, str]]) -> None:
        chapa = self.chapa_selecionada()
        if not result or chapa is None:
            return
        try:
            res = run_movimentacao(
                chapa.id, result["tipo"], result["quantidade"], result.get("observacao"),
                ator=self.ator, db_path=self.db_path,
            )
        except ChapasError as e:
            log_system_event("tui_movimentacao_error", {"chapa": chapa.codigo, "error": str(e)}, level="warning")
            self.notify(str(e), severity="error")
            return
        acao = "adicionadas" if res.movimentacao.tipo == TIPO_ENTRADA else "removidas"
        self.notify(f"{res.movimentacao.quantidade} unidades ({fmt_kg(res.peso_movimentado)} kg) {acao}.")

    def action_exportar(self) -> None:
        try:
            res = exportar_historico("csv", periodo=self.periodo, ator=self.ator,
                                     destino=EXPORT_DIR, db_path=self.db_path)
        except ChapasError as e:
            self.notify(str(e), severity="error")
            return
        if res["artefato"] is None:
            self.notify("Nada para exportar.", severity="warning")
        else:
            self.notify(f"Exportado: {res['caminho']}")


def main(db_path: str = DB_PATH, ator: Optional[Perfil] = None) -> None:
    """Run the chapas TUI application."""
    app = ChapasApp(db_path=db_path, ator=ator)
    app.run()


if __name__ == "__main__":
    main()
