from pathlib import Path

import pytest

from chapas.infra.migrations import apply_migrations
from chapas.infra.views import create_views
from chapas.usecases.gerenciar_chapas import run_cadastro
from chapas.usecases.perfis import run_cadastro_perfil


@pytest.fixture
def db(tmp_path: Path) -> str:
    db_path = str(tmp_path / "chapas_test.sqlite")
    apply_migrations(db_path)
    create_views(db_path)
    return db_path


@pytest.fixture
def controlador(db):
    return run_cadastro_perfil("Ana", "controlador", db_path=db)


@pytest.fixture
def operador(db, controlador):
    return run_cadastro_perfil("Beto", "operador", ator=controlador, db_path=db)


@pytest.fixture
def chapa(db, controlador):
    # CH-001: 3 x 1000 x 2000 mm, 86.4 kg por unidade, 10 unidades
    return run_cadastro("CH-001", "Chapa 3mm", 3, 1000, 2000, quantidade=10,
                        ator=controlador, db_path=db)
