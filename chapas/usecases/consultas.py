# chapas/usecases/consultas.py
"""
Consultas de leitura do painel:
- catálogo de chapas (ordenado por código) e filtro da busca
- histórico de movimentações por período
- estatísticas do topo do painel
- linhas prontas para exportação (chapas e movimentações)

As linhas de exportação são listas de dicts com valores já formatados
como texto; a ordem das chaves é a ordem das colunas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from chapas.config import DB_PATH
from chapas.domain.formulas import peso_unitario_medio
from chapas.domain.models import TIPO_ENTRADA, TIPO_SAIDA, Chapa, Estatisticas
from chapas.domain.periodos import PERIODO_MES, Periodo, limite_de_linhas, resolver_periodo
from chapas.domain.policies import status_por_quantidade
from chapas.adapters.parsers import fmt_data_hora, fmt_kg
from chapas.infra.repositories import ChapaRepo, MovimentacaoRepo
from chapas.infra.logger import log_database_operation

USUARIO_DESCONHECIDO = "Usuário Desconhecido"


# ----------------------
# Catálogo
# ----------------------

def listar_chapas(db_path: str = DB_PATH) -> List[Chapa]:
    chapas = ChapaRepo(db_path).get_all()
    log_database_operation("chapa", "SELECT_ALL", len(chapas))
    return chapas


def filtrar_chapas(chapas: Iterable[Chapa], termo: Optional[str]) -> List[Chapa]:
    """Busca sem diferenciar maiúsculas em código ou descrição."""
    t = (termo or "").strip().lower()
    if not t:
        return list(chapas)
    return [c for c in chapas if t in c.codigo.lower() or t in (c.descricao or "").lower()]


# ----------------------
# Histórico
# ----------------------

def historico(
    periodo: str,
    agora: Optional[datetime] = None,
    limite: Optional[int] = None,
    sem_limite: bool = False,
    db_path: str = DB_PATH,
) -> List[Dict[str, Any]]:
    """Movimentações do período, mais recentes primeiro.

    Cada linha traz os campos da movimentação mais ``codigo``,
    ``descricao``, ``usuario`` e ``peso`` (assinado pelo tipo).

    O peso de cada linha usa o peso médio ATUAL da chapa, não o peso da
    época da movimentação; com a chapa zerada ele sai 0.
    Sem ``limite`` vale o teto do período; ``sem_limite=True`` traz tudo.
    """
    p = resolver_periodo(periodo, agora)
    if sem_limite:
        limite = None
    elif limite is None:
        limite = limite_de_linhas(p)
    return _historico(p, limite, db_path)


def _historico(p: Periodo, limite: Optional[int], db_path: str) -> List[Dict[str, Any]]:
    rows = MovimentacaoRepo(db_path).listar_detalhado(inicio=p.inicio, fim=p.fim, limite=limite)
    log_database_operation("vw_movimentacoes_detalhe", "SELECT", len(rows), periodo=p.tag)
    out: List[Dict[str, Any]] = []
    for r in rows:
        unitario = peso_unitario_medio(r["chapa_quantidade"], r["chapa_peso"])
        sinal = 1 if r["tipo"] == TIPO_ENTRADA else -1
        out.append({
            "id": r["id"],
            "created_at": r["created_at"],
            "tipo": r["tipo"],
            "quantidade": int(r["quantidade"]),
            "codigo": r["chapa_codigo"],
            "descricao": r["chapa_descricao"],
            "observacao": r["observacao"],
            "usuario": r["usuario_nome"] or USUARIO_DESCONHECIDO,
            "peso": sinal * unitario * int(r["quantidade"]),
        })
    return out


# ----------------------
# Estatísticas
# ----------------------

def estatisticas(agora: Optional[datetime] = None, db_path: str = DB_PATH) -> Estatisticas:
    """Totais de chapas/unidades e unidades movimentadas no mês corrente."""
    mes = resolver_periodo(PERIODO_MES, agora)
    resumo = ChapaRepo(db_path).resumo()
    mov = MovimentacaoRepo(db_path)
    return Estatisticas(
        total_chapas=int(resumo["total_chapas"]),
        total_quantidade=int(resumo["total_quantidade"]),
        entradas_mes=mov.soma_quantidade(TIPO_ENTRADA, desde=mes.inicio),
        saidas_mes=mov.soma_quantidade(TIPO_SAIDA, desde=mes.inicio),
    )


def status_chapa(chapa: Chapa) -> str:
    return status_por_quantidade(chapa.quantidade)


# ----------------------
# Linhas de exportação
# ----------------------

def linhas_chapas(chapas: Iterable[Chapa]) -> List[Dict[str, str]]:
    return [
        {
            "Código": c.codigo,
            "Descrição": c.descricao,
            "Dimensões (mm)": c.dimensoes,
            "Quantidade": f"{c.quantidade} {c.unidade}",
            "Peso Total (kg)": fmt_kg(c.peso),
            "Localização": c.localizacao or "-",
        }
        for c in chapas
    ]


def linhas_movimentacoes(movs: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Converte linhas de ``historico`` no layout do relatório."""
    out: List[Dict[str, str]] = []
    for m in movs:
        entrada = m["tipo"] == TIPO_ENTRADA
        sinal = "+" if entrada else "-"
        out.append({
            "Data / Hora": fmt_data_hora(m["created_at"]),
            "Tipo": "Entrada" if entrada else "Saída",
            "Código": m["codigo"] or "",
            "Descrição": m["descricao"] or "",
            "Quantidade": f"{sinal}{m['quantidade']}",
            "Peso (kg)": fmt_kg(abs(m["peso"]), sinal),
            "Usuário": m["usuario"] or USUARIO_DESCONHECIDO,
        })
    return out
