# chapas/usecases/perfis.py
"""
UC: Perfis de usuário (nome + papel).

O primeiro perfil pode ser criado sem ator (instalação nova); a partir
daí só um controlador cadastra perfis.
"""

from __future__ import annotations

from typing import List, Optional

from chapas.config import DB_PATH
from chapas.domain.errors import EntradaInvalida
from chapas.domain.models import PAPEIS, Perfil
from chapas.domain.policies import OP_GERENCIAR_PERFIS, exigir_ator
from chapas.infra.repositories import PerfilRepo
from chapas.infra.logger import log_transaction, log_database_operation


def run_cadastro_perfil(
    nome: str,
    papel: str,
    ator: Optional[Perfil] = None,
    db_path: str = DB_PATH,
) -> Perfil:
    repo = PerfilRepo(db_path)
    if repo.get_all():
        exigir_ator(ator, OP_GERENCIAR_PERFIS)

    nome = (nome or "").strip()
    papel = (papel or "").strip().lower()
    if not nome:
        raise EntradaInvalida("Nome do perfil é obrigatório")
    if papel not in PAPEIS:
        raise EntradaInvalida(f"Papel inválido: {papel!r} (use {' ou '.join(PAPEIS)})")
    if repo.get_by_nome(nome) is not None:
        raise EntradaInvalida(f"Já existe um perfil chamado {nome!r}")

    perfil = repo.insert({"nome": nome, "papel": papel})
    log_database_operation("perfil", "INSERT", 1, nome=nome, papel=papel)
    log_transaction("cadastro_perfil", {"nome": nome, "papel": papel}, result={"id": perfil.id})
    return perfil


def listar_perfis(db_path: str = DB_PATH) -> List[Perfil]:
    return PerfilRepo(db_path).get_all()


def resolver_ator(ident: Optional[str], db_path: str = DB_PATH) -> Optional[Perfil]:
    """Perfil pelo id ou nome; ``None`` se não informado ou inexistente."""
    if not ident:
        return None
    return PerfilRepo(db_path).resolve(ident)
