"""
Resolução de períodos de consulta do histórico.

Um período é identificado por uma etiqueta curta usada na tela e nos
relatórios:

- ``hoje``   → últimas 24 horas (janela móvel, não o dia do calendário)
- ``semana`` → semana do calendário, de domingo 00:00 a sábado 23:59:59
- ``mes``    → mês do calendário corrente
- ``todos``  → sem limites de data

Quando o período não tem limites a consulta deve aplicar um teto de
linhas (``limite_todos``) em vez do filtro de datas.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from chapas.config import DEFAULTS
from chapas.domain.errors import EntradaInvalida


PERIODO_HOJE = "hoje"
PERIODO_SEMANA = "semana"
PERIODO_MES = "mes"
PERIODO_TODOS = "todos"
PERIODOS = (PERIODO_HOJE, PERIODO_SEMANA, PERIODO_MES, PERIODO_TODOS)

_ROTULOS = {
    PERIODO_HOJE: "Últimas 24 horas",
    PERIODO_SEMANA: "Semana atual",
    PERIODO_MES: "Mês atual",
    PERIODO_TODOS: "Todos",
}


@dataclass(frozen=True)
class Periodo:
    tag: str
    inicio: Optional[datetime]
    fim: Optional[datetime]

    @property
    def limitado(self) -> bool:
        return self.inicio is not None or self.fim is not None

    def contem(self, instante: datetime) -> bool:
        if self.inicio is not None and instante < self.inicio:
            return False
        if self.fim is not None and instante > self.fim:
            return False
        return True


def _fim_do_dia(d: datetime) -> datetime:
    return datetime.combine(d.date(), time.max, tzinfo=d.tzinfo)


def _inicio_do_dia(d: datetime) -> datetime:
    return datetime.combine(d.date(), time.min, tzinfo=d.tzinfo)


def normalizar_tag(tag: str) -> str:
    t = (tag or "").strip().lower()
    if t == "mês":
        t = PERIODO_MES
    if t not in PERIODOS:
        raise EntradaInvalida(f"Período inválido: {tag!r}. Use um de: {', '.join(PERIODOS)}")
    return t


def resolver_periodo(tag: str, agora: Optional[datetime] = None) -> Periodo:
    """Converte a etiqueta em limites concretos ``[inicio, fim]``.

    Args:
        tag: ``'hoje'``, ``'semana'``, ``'mes'`` ou ``'todos'``.
        agora: Instante de referência (padrão: ``datetime.now()``).

    Returns:
        ``Periodo`` com ``inicio``/``fim``; ambos ``None`` para ``'todos'``.

    Raises:
        EntradaInvalida: etiqueta desconhecida.
    """
    t = normalizar_tag(tag)
    agora = agora or datetime.now()

    if t == PERIODO_HOJE:
        return Periodo(t, agora - timedelta(hours=24), agora)

    if t == PERIODO_SEMANA:
        # weekday(): segunda=0 ... domingo=6; a semana começa no domingo
        dias_desde_domingo = (agora.weekday() + 1) % 7
        domingo = _inicio_do_dia(agora - timedelta(days=dias_desde_domingo))
        sabado = _fim_do_dia(domingo + timedelta(days=6))
        return Periodo(t, domingo, sabado)

    if t == PERIODO_MES:
        ultimo_dia = calendar.monthrange(agora.year, agora.month)[1]
        inicio = _inicio_do_dia(agora.replace(day=1))
        fim = _fim_do_dia(agora.replace(day=ultimo_dia))
        return Periodo(t, inicio, fim)

    return Periodo(t, None, None)


def limite_de_linhas(periodo: Periodo) -> int:
    """Teto de linhas da consulta do histórico para o período."""
    if periodo.limitado:
        return DEFAULTS.limite_periodo
    return DEFAULTS.limite_todos


def rotulo_periodo(tag: str) -> str:
    return _ROTULOS[normalizar_tag(tag)]
