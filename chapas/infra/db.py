# chapas/infra/db.py
"""
Utilidades de conexão SQLite.

Cada chamada de repositório abre a própria conexão: inserir a movimentação
e atualizar o saldo da chapa são duas idas independentes ao banco.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import uuid4


@contextmanager
def connect(db_path: str, timeout: float = 5.0) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON (necessário para o ON DELETE CASCADE das movimentações)
    - row_factory = sqlite3.Row
    - timeout de espera por lock de outro processo
    - commit ao sair (rollback em caso de exceção)
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def novo_id() -> str:
    return str(uuid4())


def agora_iso() -> str:
    """Timestamp local em ISO 8601 com microssegundos (ordenável como texto)."""
    return datetime.now().isoformat(timespec="microseconds")
