"""
Políticas de negócio do estoque de chapas.

Este módulo concentra as regras que não dependem do banco:
- aplicação de deltas ao saldo de uma chapa (única via de escrita do
  agregado quantidade/peso);
- validação da quantidade de uma movimentação;
- permissões por papel (controlador x operador);
- classificação de status da chapa para exibição.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Optional

from chapas.config import DEFAULTS
from chapas.domain.errors import AcessoNegado, EntradaInvalida
from chapas.domain.models import (
    PAPEL_CONTROLADOR,
    PAPEL_OPERADOR,
    TIPO_ENTRADA,
    TIPO_SAIDA,
    Chapa,
    Perfil,
)


# Operações verificadas na fronteira dos casos de uso
OP_CADASTRAR = "cadastrar_chapa"
OP_EDITAR = "editar_chapa"
OP_EXCLUIR = "excluir_chapa"
OP_CORRIGIR = "corrigir_saldo"
OP_ENTRADA = TIPO_ENTRADA
OP_SAIDA = TIPO_SAIDA
OP_EXPORTAR = "exportar"
OP_GERENCIAR_PERFIS = "gerenciar_perfis"

PERMISSOES: Dict[str, FrozenSet[str]] = {
    PAPEL_CONTROLADOR: frozenset({
        OP_CADASTRAR, OP_EDITAR, OP_EXCLUIR, OP_CORRIGIR,
        OP_ENTRADA, OP_SAIDA, OP_EXPORTAR, OP_GERENCIAR_PERFIS,
    }),
    PAPEL_OPERADOR: frozenset({OP_SAIDA, OP_EXPORTAR}),
}


def aplicar_delta(chapa: Chapa, delta_quantidade: int, delta_peso: float) -> Chapa:
    """Aplica um delta assinado ao saldo da chapa e devolve a nova chapa.

    Regras:
        - ``quantidade' = max(0, quantidade + delta_quantidade)``
        - ``peso' = max(0, peso + delta_peso)``

    O piso em zero é intencional: saldo negativo nunca deve ser
    persistido, mesmo que a aritmética anterior (arredondamento ou duas
    saídas concorrentes) produza um.

    Args:
        chapa: Estado atual da chapa.
        delta_quantidade: Variação de unidades (negativa para saída).
        delta_peso: Variação de peso em kg (negativa para saída).

    Returns:
        Uma nova ``Chapa``; o objeto recebido não é alterado.
    """
    nova_qtd = max(0, int(chapa.quantidade) + int(delta_quantidade))
    novo_peso = max(0.0, float(chapa.peso) + float(delta_peso))
    return chapa.com_saldo(nova_qtd, novo_peso)


def validar_quantidade(valor: Any) -> int:
    """Converte e valida a quantidade de uma movimentação (inteiro > 0)."""
    if isinstance(valor, bool) or valor is None:
        raise EntradaInvalida("Quantidade inválida. Informe um número inteiro maior que zero.")
    if isinstance(valor, float):
        if not valor.is_integer():
            raise EntradaInvalida("Quantidade inválida. Informe um número inteiro maior que zero.")
        valor = int(valor)
    if isinstance(valor, str):
        s = valor.strip()
        if not s.lstrip("+-").isdecimal():
            raise EntradaInvalida("Quantidade inválida. Informe um número inteiro maior que zero.")
        try:
            valor = int(s)
        except ValueError as e:
            raise EntradaInvalida("Quantidade inválida. Informe um número inteiro maior que zero.") from e
    if not isinstance(valor, int) or valor <= 0:
        raise EntradaInvalida("Quantidade inválida. Informe um número inteiro maior que zero.")
    return valor


def validar_tipo(tipo: str) -> str:
    t = (tipo or "").strip().lower()
    if t == "saída":
        t = TIPO_SAIDA
    if t not in (TIPO_ENTRADA, TIPO_SAIDA):
        raise EntradaInvalida(f"Tipo de movimentação inválido: {tipo!r}")
    return t


def pode_executar(papel: str, operacao: str) -> bool:
    """Indica se o papel tem permissão para a operação."""
    return operacao in PERMISSOES.get((papel or "").lower(), frozenset())


def exigir_permissao(papel: str, operacao: str) -> None:
    if not pode_executar(papel, operacao):
        raise AcessoNegado(papel, operacao)


def status_por_quantidade(quantidade: int, limite_baixo: int = DEFAULTS.estoque_baixo) -> str:
    """Classifica a chapa em ``'ZERADO'``, ``'BAIXO'`` ou ``'OK'``."""
    if quantidade <= 0:
        return "ZERADO"
    if quantidade < limite_baixo:
        return "BAIXO"
    return "OK"


def exigir_ator(ator: Optional[Perfil], operacao: str) -> Perfil:
    """Garante que há um usuário identificado e que seu papel permite a operação."""
    if ator is None:
        raise AcessoNegado("", operacao)
    exigir_permissao(ator.papel, operacao)
    return ator
