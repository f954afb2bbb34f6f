import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from chapas.adapters import cli
from chapas.adapters.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def console_largo(monkeypatch):
    # tabelas largas não quebram o código da chapa em linhas
    monkeypatch.setattr(cli.console, "width", 200)


def _invoke(*args):
    return runner.invoke(app, [str(a) for a in args])


def _setup(tmp_path: Path) -> str:
    db = str(tmp_path / "cli.sqlite")
    assert _invoke("migrate", "--db", db).exit_code == 0
    r = _invoke("perfil", "add", "Ana", "--papel", "controlador", "--db", db)
    assert r.exit_code == 0, r.output
    r = _invoke("perfil", "add", "Beto", "--papel", "operador", "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output
    r = _invoke("chapa", "nova", "--codigo", "CH-001", "--descricao", "Chapa 3mm",
                "--espessura", 3, "--largura", 1000, "--comprimento", 2000,
                "--quantidade", 10, "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output
    return db


def test_cli_migrate(tmp_path: Path):
    db = tmp_path / "novo.sqlite"
    result = _invoke("migrate", "--db", db)
    assert result.exit_code == 0, result.output
    assert "Migrações aplicadas" in result.output
    assert db.exists()


def test_cli_fluxo_de_saida(tmp_path: Path):
    db = _setup(tmp_path)
    r = _invoke("saida", "CH-001", "4", "-u", "Beto", "--db", db)
    assert r.exit_code == 0, r.output
    assert "518.40" in r.output

    r = _invoke("saida", "CH-001", "10", "-u", "Beto", "--db", db)
    assert r.exit_code == 1
    assert "Apenas 6 unidades" in r.output

    r = _invoke("chapa", "listar", "--db", db)
    assert r.exit_code == 0
    assert "CH-001" in r.output
    assert "BAIXO" in r.output


def test_cli_operador_nao_faz_entrada(tmp_path: Path):
    db = _setup(tmp_path)
    r = _invoke("entrada", "CH-001", "1", "-u", "Beto", "--db", db)
    assert r.exit_code == 1
    assert "operador" in r.output


def test_cli_usuario_por_variavel_de_ambiente(tmp_path: Path):
    db = _setup(tmp_path)
    r = runner.invoke(app, ["entrada", "CH-001", "2", "--db", db], env={"CHAPAS_USUARIO": "Ana"})
    assert r.exit_code == 0, r.output


def test_cli_usuario_desconhecido(tmp_path: Path):
    db = _setup(tmp_path)
    r = _invoke("saida", "CH-001", "1", "-u", "Zé", "--db", db)
    assert r.exit_code == 1
    assert "Perfil não encontrado" in r.output


def test_cli_historico_stats_e_exportacao(tmp_path: Path):
    db = _setup(tmp_path)
    _invoke("saida", "CH-001", "3", "-u", "Ana", "--db", db)

    r = _invoke("historico", "--periodo", "semana", "--db", db)
    assert r.exit_code == 0, r.output
    assert "CH-001" in r.output

    r = _invoke("historico", "--periodo", "ano", "--db", db)
    assert r.exit_code == 1

    r = _invoke("stats", "--db", db)
    assert r.exit_code == 0
    assert "Saídas no mês" in r.output

    destino = tmp_path / "exports"
    r = _invoke("exportar", "chapas", "--formato", "csv", "--destino", destino, "-u", "Beto", "--db", db)
    assert r.exit_code == 0, r.output
    [arquivo] = os.listdir(destino)
    assert arquivo.startswith("estoque_chapas_") and arquivo.endswith(".csv")

    r = _invoke("exportar", "historico", "--formato", "pdf", "--periodo", "todos",
                "--destino", destino, "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output
    assert any(f.startswith("historico_movimentacoes_todos_") for f in os.listdir(destino))


def test_cli_exportar_vazio(tmp_path: Path):
    db = _setup(tmp_path)
    r = _invoke("exportar", "chapas", "--busca", "nada", "--destino", tmp_path / "x", "-u", "Ana", "--db", db)
    assert r.exit_code == 0
    assert "Nada para exportar" in r.output


def test_cli_editar_corrigir_excluir(tmp_path: Path):
    db = _setup(tmp_path)
    r = _invoke("chapa", "editar", "CH-001", "--localizacao", "A3", "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output

    r = _invoke("chapa", "corrigir", "CH-001", "--quantidade", "9", "--peso", "777.6", "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output
    assert "9 UN" in r.output

    r = _invoke("chapa", "excluir", "CH-001", "--sim", "-u", "Beto", "--db", db)
    assert r.exit_code == 1

    r = _invoke("chapa", "excluir", "CH-001", "--sim", "-u", "Ana", "--db", db)
    assert r.exit_code == 0, r.output
    assert "excluída" in r.output
