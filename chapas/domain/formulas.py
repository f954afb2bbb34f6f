"""
Fórmulas de peso das chapas.

O peso unitário de uma chapa é definido uma única vez, no cadastro:
ou informado pelo usuário, ou derivado das dimensões pela fórmula

    peso = espessura x largura x comprimento x FATOR_DENSIDADE

com todas as dimensões em milímetros e o fator já combinando a densidade
do aço e a conversão mm³ -> kg. Depois do cadastro o banco guarda apenas o
peso total em estoque; o peso unitário passa a ser implícito
(peso / quantidade) e é recalculado a cada movimentação.

All functions are pure: they depend solely on their inputs and do
not modify any external state.
"""

from __future__ import annotations

from math import isfinite
from typing import Optional, Union

from chapas.config import DEFAULTS
from chapas.domain.errors import EntradaInvalida

Numero = Union[int, float, str]

FATOR_DENSIDADE = DEFAULTS.fator_densidade


def _positivo(valor: Optional[Numero], nome: str) -> float:
    if valor is None:
        raise EntradaInvalida(f"{nome} deve ser informado")
    try:
        f = float(str(valor).replace(",", ".")) if isinstance(valor, str) else float(valor)
    except (TypeError, ValueError):
        raise EntradaInvalida(f"{nome} inválido: {valor!r}") from None
    if not isfinite(f) or f <= 0:
        raise EntradaInvalida(f"{nome} deve ser maior que zero")
    return f


def peso_unitario_por_dimensoes(
    espessura: Numero,
    largura: Numero,
    comprimento: Numero,
    fator_densidade: float = FATOR_DENSIDADE,
) -> float:
    """Deriva o peso de uma unidade a partir das dimensões (mm).

    Exemplo: ``peso_unitario_por_dimensoes(3, 1000, 2000)`` → 86.4 kg.

    Raises
    ------
    EntradaInvalida
        Se alguma dimensão for zero, negativa ou não numérica.
    """
    e = _positivo(espessura, "Espessura")
    la = _positivo(largura, "Largura")
    c = _positivo(comprimento, "Comprimento")
    return e * la * c * float(fator_densidade)


def peso_unitario_informado(valor: Numero) -> float:
    """Valida o peso unitário digitado pelo usuário (modo explícito)."""
    return _positivo(valor, "Peso unitário")


def peso_total_inicial(peso_unitario: float, quantidade: int) -> float:
    """Peso total que a chapa armazena no cadastro."""
    if quantidade < 0:
        raise EntradaInvalida("Quantidade inicial não pode ser negativa")
    return float(peso_unitario) * int(quantidade)


def peso_unitario_medio(quantidade: int, peso_total: float) -> float:
    """Peso médio de uma unidade a partir do agregado armazenado.

    Retorna 0 quando não há peso ou quantidade em estoque.
    """
    if peso_total is None or quantidade is None:
        return 0.0
    if float(peso_total) <= 0 or int(quantidade) <= 0:
        return 0.0
    return abs(float(peso_total)) / int(quantidade)


def peso_movimentado(quantidade_atual: int, peso_total: float, quantidade_movimentada: int) -> float:
    """Peso correspondente a ``quantidade_movimentada`` unidades."""
    return peso_unitario_medio(quantidade_atual, peso_total) * int(quantidade_movimentada)


def dimensao(valor: Numero, nome: str = "Dimensão") -> float:
    """Valida e converte uma dimensão em mm (> 0)."""
    return _positivo(valor, nome)
