# chapas/adapters/cli.py
"""
CLI do estoque de chapas (Typer).

Comandos principais:
- migrate                        -> aplica migrações e cria views
- perfil add/list                -> perfis de usuário (controlador/operador)
- chapa nova/listar/editar/excluir/corrigir
- entrada <chapa> <qtd>          -> registra entrada (controlador)
- saida <chapa> <qtd>            -> registra saída
- movimentacoes-lote <xlsx>      -> registra movimentações a partir de um XLSX
- historico --periodo            -> histórico de movimentações
- stats                          -> totais do painel
- exportar chapas/historico      -> CSV, XLSX ou PDF
- tui                            -> interface de terminal (Textual)

O usuário vem de ``--usuario`` (id ou nome do perfil) ou da variável
CHAPAS_USUARIO.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from chapas.config import DB_PATH, EXPORT_DIR
from chapas.domain.errors import ChapasError, EntradaInvalida
from chapas.domain.models import PAPEL_OPERADOR, Perfil
from chapas.domain.periodos import PERIODO_TODOS, rotulo_periodo
from chapas.adapters.parsers import fmt_data_hora, fmt_kg
from chapas.infra.migrations import apply_migrations
from chapas.infra.views import create_views
from chapas.usecases.perfis import listar_perfis, resolver_ator, run_cadastro_perfil
from chapas.usecases.gerenciar_chapas import run_cadastro, run_correcao, run_edicao, run_exclusao
from chapas.usecases.registrar_movimentacao import run_entrada, run_movimentacao_lote, run_saida
from chapas.usecases.consultas import estatisticas, filtrar_chapas, historico, listar_chapas, status_chapa
from chapas.usecases.exportar import ESCOPO_FILTRADO, exportar_chapas, exportar_historico


app = typer.Typer(help="Estoque de Chapas — CLI")
console = Console()

_DB_OPT = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")
_USUARIO_OPT = typer.Option(None, "--usuario", "-u", envvar="CHAPAS_USUARIO",
                            help="Id ou nome do perfil que executa a operação")


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _preparar(db_path: str) -> None:
    apply_migrations(db_path)
    create_views(db_path)


@contextmanager
def _erros_amigaveis() -> Iterator[None]:
    """Converte erros de domínio em mensagem vermelha e código de saída 1."""
    try:
        yield
    except ChapasError as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)


def _ator(usuario: Optional[str], db_path: str) -> Optional[Perfil]:
    if not usuario:
        return None
    perfil = resolver_ator(usuario, db_path)
    if perfil is None:
        raise EntradaInvalida(f"Perfil não encontrado: {usuario}")
    return perfil


_DIREITA = {"quantidade", "peso", "peso (kg)", "peso total (kg)", "total"}


def _display_table(data: Dict[str, Any] | List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe os dados em tabelas formatadas usando Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            if column.lower() in _DIREITA:
                table.add_column(column, justify="right")
            elif column.lower() in ("status", "tipo"):
                table.add_column(column, justify="center")
            else:
                table.add_column(column)
        for row in data:
            table.add_row(*[str(row.get(col, "")) for col in columns])
        console.print(table)
        return

    # Operações em lote
    if isinstance(data, dict) and "registros" in data and "total" in data:
        titulo = f"{data['tipo']} em Lote" if "tipo" in data else "Registros em Lote"
        panel_content = [
            f"Total de registros: {data['total']}",
            f"Processados com sucesso: {data.get('sucessos', 0)}",
        ]
        if data.get("erros"):
            panel_content.append(f"Erros: {len(data['erros'])}")
        console.print(Panel("\n".join(panel_content), title=titulo))

        if data.get("erros"):
            erro_table = Table(title="Erros Encontrados")
            erro_table.add_column("Linha")
            erro_table.add_column("Erro")
            for erro in data["erros"]:
                erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
            console.print(erro_table)
        return

    if isinstance(data, dict):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        for chave, valor in data.items():
            table.add_row(str(chave), str(valor))
        console.print(table)
        return

    _print_json(data)


_STATUS_COR = {"ZERADO": "bold red", "BAIXO": "bold yellow", "OK": "bold green"}


def _linha_chapa(c) -> Dict[str, Any]:
    status = status_chapa(c)
    return {
        "Código": c.codigo,
        "Descrição": c.descricao,
        "Dimensões (mm)": c.dimensoes,
        "Quantidade": f"{c.quantidade} {c.unidade}",
        "Peso Total (kg)": fmt_kg(c.peso),
        "Localização": c.localizacao or "-",
        "Status": f"[{_STATUS_COR[status]}]{status}[/]",
    }


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = _DB_OPT):
    """Aplica migrações e recria as views auxiliares."""
    _preparar(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


# -----------------------
# perfis
# -----------------------

perfil_app = typer.Typer(help="Perfis de usuário (controlador/operador).")
app.add_typer(perfil_app, name="perfil")


@perfil_app.command("add")
def cmd_perfil_add(
    nome: str = typer.Argument(..., help="Nome de exibição"),
    papel: str = typer.Option(PAPEL_OPERADOR, "--papel", help="controlador | operador"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Cadastra um perfil. O primeiro perfil dispensa --usuario."""
    _preparar(db_path)
    with _erros_amigaveis():
        perfil = run_cadastro_perfil(nome, papel, ator=_ator(usuario, db_path), db_path=db_path)
    typer.echo(f">> Perfil {perfil.nome} ({perfil.papel}) criado: {perfil.id}")


@perfil_app.command("list")
def cmd_perfil_list(db_path: str = _DB_OPT):
    """Lista os perfis cadastrados."""
    _preparar(db_path)
    rows = [{"ID": p.id, "Nome": p.nome, "Papel": p.papel} for p in listar_perfis(db_path)]
    _display_table(rows, title="Perfis")


# -----------------------
# chapas
# -----------------------

chapa_app = typer.Typer(help="Cadastro e manutenção de chapas.")
app.add_typer(chapa_app, name="chapa")


@chapa_app.command("nova")
def cmd_chapa_nova(
    codigo: str = typer.Option(..., "--codigo", help="Código da chapa (ex.: CH-001)"),
    descricao: str = typer.Option(..., "--descricao", help="Descrição"),
    espessura: float = typer.Option(..., "--espessura", help="mm"),
    largura: float = typer.Option(..., "--largura", help="mm"),
    comprimento: float = typer.Option(..., "--comprimento", help="mm"),
    quantidade: int = typer.Option(0, "--quantidade", help="Quantidade inicial"),
    peso_unitario: Optional[float] = typer.Option(
        None, "--peso-unitario", help="kg por unidade; se omitido é calculado pelas dimensões"),
    unidade: Optional[str] = typer.Option(None, "--unidade", help="Unidade de medida (padrão UN)"),
    localizacao: Optional[str] = typer.Option(None, "--localizacao", help="Local no estoque"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Cadastra uma chapa (somente controlador)."""
    _preparar(db_path)
    with _erros_amigaveis():
        c = run_cadastro(
            codigo, descricao, espessura, largura, comprimento,
            quantidade=quantidade, peso_unitario=peso_unitario, unidade=unidade,
            localizacao=localizacao, ator=_ator(usuario, db_path), db_path=db_path,
        )
    _display_table({
        "ID": c.id, "Código": c.codigo, "Dimensões (mm)": c.dimensoes,
        "Quantidade": f"{c.quantidade} {c.unidade}", "Peso Total (kg)": fmt_kg(c.peso),
    }, title="Chapa Cadastrada")


@chapa_app.command("listar")
def cmd_chapa_listar(
    busca: Optional[str] = typer.Option(None, "--busca", "-b", help="Filtra por código ou descrição"),
    db_path: str = _DB_OPT,
):
    """Lista as chapas com saldo e status."""
    _preparar(db_path)
    chapas = filtrar_chapas(listar_chapas(db_path), busca)
    _display_table([_linha_chapa(c) for c in chapas], title="Chapas em Estoque")


@chapa_app.command("editar")
def cmd_chapa_editar(
    chapa: str = typer.Argument(..., help="Id ou código da chapa"),
    codigo: Optional[str] = typer.Option(None, "--codigo"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    unidade: Optional[str] = typer.Option(None, "--unidade"),
    localizacao: Optional[str] = typer.Option(None, "--localizacao", help="Use '' para limpar"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Altera dados descritivos da chapa (somente controlador)."""
    _preparar(db_path)
    campos: Dict[str, Any] = {"codigo": codigo, "descricao": descricao, "unidade": unidade}
    if localizacao is not None:
        campos["localizacao"] = localizacao
    with _erros_amigaveis():
        c = run_edicao(chapa, campos, ator=_ator(usuario, db_path), db_path=db_path)
    typer.echo(f">> Chapa {c.codigo} atualizada.")


@chapa_app.command("excluir")
def cmd_chapa_excluir(
    chapa: str = typer.Argument(..., help="Id ou código da chapa"),
    sim: bool = typer.Option(False, "--sim", "-y", help="Não pedir confirmação"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Exclui a chapa e todo o histórico dela (somente controlador)."""
    _preparar(db_path)
    if not sim:
        typer.confirm(f"Excluir a chapa {chapa} e todo o histórico de movimentações?", abort=True)
    with _erros_amigaveis():
        res = run_exclusao(chapa, ator=_ator(usuario, db_path), db_path=db_path)
    typer.echo(f">> Chapa {res['codigo']} excluída ({res['movimentacoes_removidas']} movimentações removidas).")


@chapa_app.command("corrigir")
def cmd_chapa_corrigir(
    chapa: str = typer.Argument(..., help="Id ou código da chapa"),
    quantidade: Optional[int] = typer.Option(None, "--quantidade", help="Quantidade correta"),
    peso: Optional[float] = typer.Option(None, "--peso", help="Peso total correto (kg)"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Corrige o saldo da chapa sem gerar movimentação (somente controlador)."""
    _preparar(db_path)
    with _erros_amigaveis():
        c = run_correcao(chapa, quantidade=quantidade, peso=peso,
                         ator=_ator(usuario, db_path), db_path=db_path)
    typer.echo(f">> Saldo de {c.codigo}: {c.quantidade} {c.unidade}, {fmt_kg(c.peso)} kg")


# -----------------------
# movimentações
# -----------------------

def _exibir_resultado(res, titulo: str) -> None:
    sinal = "+" if res.movimentacao.tipo == "entrada" else "-"
    _display_table({
        "ID": res.movimentacao.id,
        "Chapa": res.chapa.codigo,
        "Quantidade": f"{sinal}{res.movimentacao.quantidade}",
        "Peso (kg)": fmt_kg(res.peso_movimentado, sinal),
        "Saldo": f"{res.chapa.quantidade} {res.chapa.unidade} / {fmt_kg(res.chapa.peso)} kg",
    }, title=titulo)


@app.command("entrada")
def cmd_entrada(
    chapa: str = typer.Argument(..., help="Id ou código da chapa"),
    quantidade: str = typer.Argument(..., help="Unidades (inteiro > 0)"),
    observacao: Optional[str] = typer.Option(None, "--obs", help="Observação"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Registra uma entrada de chapas (somente controlador)."""
    _preparar(db_path)
    with _erros_amigaveis():
        res = run_entrada(chapa, quantidade, observacao, ator=_ator(usuario, db_path), db_path=db_path)
    _exibir_resultado(res, "Entrada Registrada")


@app.command("saida")
def cmd_saida(
    chapa: str = typer.Argument(..., help="Id ou código da chapa"),
    quantidade: str = typer.Argument(..., help="Unidades (inteiro > 0)"),
    observacao: Optional[str] = typer.Option(None, "--obs", help="Observação"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Registra uma saída de chapas."""
    _preparar(db_path)
    with _erros_amigaveis():
        res = run_saida(chapa, quantidade, observacao, ator=_ator(usuario, db_path), db_path=db_path)
    _exibir_resultado(res, "Saída Registrada")


@app.command("movimentacoes-lote")
def cmd_movimentacoes_lote(
    path: str = typer.Argument(..., help="XLSX com colunas Código, Tipo, Quantidade, Observação"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Registra movimentações em lote a partir de um XLSX."""
    _preparar(db_path)
    with _erros_amigaveis():
        info = run_movimentacao_lote(path, ator=_ator(usuario, db_path), db_path=db_path)
    _display_table(info, title="Processamento de Movimentações em Lote")


@app.command("historico")
def cmd_historico(
    periodo: str = typer.Option(PERIODO_TODOS, "--periodo", "-p", help="hoje | semana | mes | todos"),
    db_path: str = _DB_OPT,
):
    """Mostra o histórico de movimentações do período."""
    _preparar(db_path)
    with _erros_amigaveis():
        movs = historico(periodo, db_path=db_path)
        titulo = f"Histórico de Movimentações ({rotulo_periodo(periodo)})"
    rows = []
    for m in movs:
        sinal = "+" if m["tipo"] == "entrada" else "-"
        rows.append({
            "Data / Hora": fmt_data_hora(m["created_at"]),
            "Tipo": "[green]Entrada[/]" if sinal == "+" else "[red]Saída[/]",
            "Código": m["codigo"],
            "Quantidade": f"{sinal}{m['quantidade']}",
            "Peso (kg)": fmt_kg(abs(m["peso"]), sinal),
            "Usuário": m["usuario"],
        })
    _display_table(rows, title=titulo)


@app.command("stats")
def cmd_stats(db_path: str = _DB_OPT):
    """Totais de chapas, unidades e movimentações do mês."""
    _preparar(db_path)
    s = estatisticas(db_path=db_path)
    _display_table({
        "Tipos de chapa": s.total_chapas,
        "Unidades em estoque": s.total_quantidade,
        "Entradas no mês": s.entradas_mes,
        "Saídas no mês": s.saidas_mes,
    }, title="Resumo do Estoque")


# -----------------------
# exportação
# -----------------------

exportar_app = typer.Typer(help="Exporta chapas ou histórico em CSV, XLSX ou PDF.")
app.add_typer(exportar_app, name="exportar")


def _relatar_exportacao(res: Dict[str, Any]) -> None:
    if res["artefato"] is None:
        console.print("[yellow]Nada para exportar.[/]")
        return
    typer.echo(f">> {res['linhas']} linhas exportadas para: {res['caminho']}")


@exportar_app.command("chapas")
def cmd_exportar_chapas(
    formato: str = typer.Option("csv", "--formato", "-f", help="csv | xlsx | pdf"),
    escopo: str = typer.Option(ESCOPO_FILTRADO, "--escopo", help="filtrado | todos"),
    busca: Optional[str] = typer.Option(None, "--busca", "-b", help="Filtro por código ou descrição"),
    destino: str = typer.Option(EXPORT_DIR, "--destino", help="Diretório de saída"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Exporta o catálogo de chapas."""
    _preparar(db_path)
    with _erros_amigaveis():
        res = exportar_chapas(formato, escopo=escopo, termo=busca, ator=_ator(usuario, db_path),
                              destino=destino, db_path=db_path)
    _relatar_exportacao(res)


@exportar_app.command("historico")
def cmd_exportar_historico(
    formato: str = typer.Option("csv", "--formato", "-f", help="csv | xlsx | pdf"),
    periodo: str = typer.Option(PERIODO_TODOS, "--periodo", "-p", help="hoje | semana | mes | todos"),
    escopo: str = typer.Option(ESCOPO_FILTRADO, "--escopo", help="filtrado | todos"),
    destino: str = typer.Option(EXPORT_DIR, "--destino", help="Diretório de saída"),
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Exporta o histórico de movimentações do período."""
    _preparar(db_path)
    with _erros_amigaveis():
        res = exportar_historico(formato, periodo=periodo, escopo=escopo, ator=_ator(usuario, db_path),
                                 destino=destino, db_path=db_path)
    _relatar_exportacao(res)


# -----------------------
# TUI
# -----------------------

@app.command("tui")
def cmd_tui(
    usuario: Optional[str] = _USUARIO_OPT,
    db_path: str = _DB_OPT,
):
    """Inicia a interface de terminal interativa."""
    _preparar(db_path)
    with _erros_amigaveis():
        ator = _ator(usuario, db_path)
    from chapas.adapters.tui import main as tui_main
    try:
        tui_main(db_path=db_path, ator=ator)
    except KeyboardInterrupt:
        typer.echo("\nSaindo do TUI...")
        raise typer.Exit(0)


def main():
    app()


if __name__ == "__main__":
    main()
