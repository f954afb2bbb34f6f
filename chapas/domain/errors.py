"""
Erros de domínio do motor de movimentação.

Todos herdam de ``ChapasError`` para que os adaptadores (CLI/TUI) possam
exibir uma mensagem amigável sem capturar exceções genéricas.
"""

from __future__ import annotations

from typing import Optional


class ChapasError(Exception):
    """Erro base do sistema de chapas."""


class EntradaInvalida(ChapasError, ValueError):
    """Dado informado pelo usuário é inválido; nada foi gravado."""


class EstoqueInsuficiente(ChapasError):
    """Saída maior que a quantidade disponível da chapa."""

    def __init__(self, disponivel: int, solicitado: Optional[int] = None):
        self.disponivel = int(disponivel)
        self.solicitado = solicitado
        super().__init__(f"Apenas {self.disponivel} unidades disponíveis em estoque.")


class FalhaReconciliacao(ChapasError):
    """A movimentação foi gravada mas o saldo da chapa não foi atualizado.

    Ledger e agregado estão divergentes: a mensagem orienta o usuário a
    atualizar a tela e conferir o saldo antes de repetir a operação.
    """

    def __init__(self, movimentacao_id: str, chapa_id: str, motivo: str = ""):
        self.movimentacao_id = movimentacao_id
        self.chapa_id = chapa_id
        self.motivo = motivo
        msg = (
            f"Movimentação {movimentacao_id} registrada, mas o saldo da chapa "
            f"não foi atualizado. Atualize a lista e confira o estoque antes de tentar novamente."
        )
        if motivo:
            msg += f" ({motivo})"
        super().__init__(msg)


class AcessoNegado(ChapasError, PermissionError):
    """O papel do usuário não permite a operação."""

    def __init__(self, papel: str, operacao: str):
        self.papel = papel
        self.operacao = operacao
        if not papel:
            super().__init__("Usuário não autenticado.")
        else:
            super().__init__(f"Perfil '{papel}' não pode executar '{operacao}'.")


class SaldoDesatualizado(ChapasError):
    """O saldo lido para uma correção mudou antes da escrita."""

    def __init__(self, chapa_id: str):
        self.chapa_id = chapa_id
        super().__init__("O saldo da chapa foi alterado por outra operação. Atualize a lista e tente novamente.")
