# chapas/usecases/exportar.py
"""
UC: Exportar o estoque de chapas e o histórico de movimentações.

Escopo:
- "filtrado": o que está na tela (busca aplicada às chapas; período com o
  teto de linhas do histórico)
- "todos":    todas as chapas; todas as movimentações, sem período e sem teto

Nomes de arquivo:
- estoque_chapas_<AAAAMMDDTHHMMSS>.<ext>
- historico_movimentacoes_<periodo>_<AAAAMMDDTHHMMSS>.<ext>
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from chapas.config import DB_PATH, EXPORT_DIR
from chapas.domain.errors import EntradaInvalida
from chapas.domain.models import Perfil
from chapas.domain.periodos import PERIODO_TODOS, normalizar_tag, resolver_periodo
from chapas.domain.policies import OP_EXPORTAR, exigir_ator
from chapas.adapters.exportadores import Artefato, renderizar, salvar_artefato
from chapas.usecases.consultas import (
    filtrar_chapas,
    historico,
    linhas_chapas,
    linhas_movimentacoes,
    listar_chapas,
)
from chapas.infra.logger import log_file_operation, log_system_event, print_system

ESCOPO_FILTRADO = "filtrado"
ESCOPO_TODOS = "todos"
ESCOPOS = (ESCOPO_FILTRADO, ESCOPO_TODOS)

TITULO_CHAPAS = "Estoque de Chapas"
ABA_CHAPAS = "Chapas"
ABA_MOVIMENTACOES = "Movimentações"


def _carimbo(agora: datetime) -> str:
    return agora.strftime("%Y%m%dT%H%M%S")


def _escopo(escopo: str) -> str:
    e = (escopo or "").strip().lower()
    if e not in ESCOPOS:
        raise EntradaInvalida(f"Escopo inválido: {escopo!r} (use {' ou '.join(ESCOPOS)})")
    return e


def titulo_historico(periodo: str) -> str:
    return f"Relatório de Movimentações - Período: {normalizar_tag(periodo).upper()}"


def _finalizar(artefato: Optional[Artefato], destino: Optional[str], n: int, tipo: str) -> Dict[str, Any]:
    if artefato is None:
        print_system(f">> Nada para exportar ({tipo}).")
        log_system_event("exportacao_vazia", {"tipo": tipo})
        return {"artefato": None, "caminho": None, "linhas": 0}
    caminho = None
    if destino is not None:
        caminho = salvar_artefato(artefato, destino)
        log_file_operation("export", caminho, rows_processed=n, tipo=tipo, bytes=len(artefato.conteudo))
    return {"artefato": artefato, "caminho": caminho, "linhas": n}


def exportar_chapas(
    formato: str,
    escopo: str = ESCOPO_FILTRADO,
    termo: Optional[str] = None,
    ator: Optional[Perfil] = None,
    agora: Optional[datetime] = None,
    destino: Optional[str] = EXPORT_DIR,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Exporta o catálogo de chapas.

    Retorna ``{"artefato", "caminho", "linhas"}``; ``artefato`` é ``None``
    quando não há chapas no escopo. Com ``destino=None`` nada é gravado.
    """
    exigir_ator(ator, OP_EXPORTAR)
    agora = agora or datetime.now()
    chapas = listar_chapas(db_path)
    if _escopo(escopo) == ESCOPO_FILTRADO:
        chapas = filtrar_chapas(chapas, termo)

    linhas = linhas_chapas(chapas)
    artefato = renderizar(
        linhas, formato, TITULO_CHAPAS, f"estoque_chapas_{_carimbo(agora)}",
        aba=ABA_CHAPAS, gerado_em=agora,
    )
    return _finalizar(artefato, destino, len(linhas), "chapas")


def exportar_historico(
    formato: str,
    periodo: str = PERIODO_TODOS,
    escopo: str = ESCOPO_FILTRADO,
    ator: Optional[Perfil] = None,
    agora: Optional[datetime] = None,
    destino: Optional[str] = EXPORT_DIR,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Exporta o histórico de movimentações de um período.

    Com ``escopo="todos"`` o período informado é ignorado.
    """
    exigir_ator(ator, OP_EXPORTAR)
    agora = agora or datetime.now()
    tag = resolver_periodo(periodo, agora).tag
    sem_teto = _escopo(escopo) == ESCOPO_TODOS
    if sem_teto:
        tag = PERIODO_TODOS
    movs = historico(tag, agora=agora, sem_limite=sem_teto, db_path=db_path)

    linhas = linhas_movimentacoes(movs)
    artefato = renderizar(
        linhas, formato, titulo_historico(tag),
        f"historico_movimentacoes_{tag}_{_carimbo(agora)}",
        aba=ABA_MOVIMENTACOES, gerado_em=agora,
    )
    return _finalizar(artefato, destino, len(linhas), "movimentacoes")
