# chapas/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (perfil, chapa, movimentacao)
V2: adiciona updated_at na chapa (carimbo da última reconciliação do saldo)
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Perfis (usuário -> papel)
    """
    CREATE TABLE IF NOT EXISTS perfil (
        id TEXT PRIMARY KEY,
        nome TEXT NOT NULL,
        papel TEXT NOT NULL CHECK (papel IN ('controlador', 'operador'))
    );
    """,
    # Cadastro de chapas (agregado: quantidade e peso total em estoque)
    """
    CREATE TABLE IF NOT EXISTS chapa (
        id TEXT PRIMARY KEY,
        codigo TEXT NOT NULL,
        descricao TEXT NOT NULL,
        espessura REAL NOT NULL CHECK (espessura > 0),
        largura REAL NOT NULL CHECK (largura > 0),
        comprimento REAL NOT NULL CHECK (comprimento > 0),
        unidade TEXT NOT NULL DEFAULT 'UN',
        localizacao TEXT,
        quantidade INTEGER NOT NULL DEFAULT 0 CHECK (quantidade >= 0),
        peso REAL NOT NULL DEFAULT 0 CHECK (peso >= 0),
        created_at TEXT NOT NULL
    );
    """,
    # Movimentações (ledger imutável); some junto com a chapa
    """
    CREATE TABLE IF NOT EXISTS movimentacao (
        id TEXT PRIMARY KEY,
        chapa_id TEXT NOT NULL,
        usuario_id TEXT,
        tipo TEXT NOT NULL CHECK (tipo IN ('entrada', 'saida')),
        quantidade INTEGER NOT NULL CHECK (quantidade > 0),
        observacao TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (chapa_id) REFERENCES chapa(id) ON DELETE CASCADE,
        FOREIGN KEY (usuario_id) REFERENCES perfil(id) ON DELETE SET NULL
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    _ensure_column(conn, "chapa", "updated_at", "updated_at TEXT")


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
