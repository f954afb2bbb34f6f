# chapas/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios devolvem e aceitam estas dataclasses; ``from_row``
  converte linhas do SQLite (``sqlite3.Row`` ou dict).
- ``Chapa`` é o agregado mutável (quantidade/peso em estoque);
  ``Movimentacao`` é um fato imutável do histórico.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


TIPO_ENTRADA = "entrada"
TIPO_SAIDA = "saida"
TIPOS_MOVIMENTACAO = (TIPO_ENTRADA, TIPO_SAIDA)

PAPEL_CONTROLADOR = "controlador"
PAPEL_OPERADOR = "operador"
PAPEIS = (PAPEL_CONTROLADOR, PAPEL_OPERADOR)


@dataclass(frozen=True)
class Perfil:
    """Usuário autenticado e seu papel."""
    id: str
    nome: str
    papel: str  # 'controlador' | 'operador'

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Perfil":
        return cls(id=row["id"], nome=row["nome"], papel=row["papel"])


@dataclass(frozen=True)
class Chapa:
    """Chapa de aço (SKU) com saldo em estoque."""
    id: str
    codigo: str
    descricao: str
    espessura: float                 # mm
    largura: float                   # mm
    comprimento: float               # mm
    quantidade: int = 0
    peso: float = 0.0                # kg, peso total em estoque (não unitário)
    unidade: str = "UN"
    localizacao: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def dimensoes(self) -> str:
        return f"{_fmt_num(self.espessura)} x {_fmt_num(self.largura)} x {_fmt_num(self.comprimento)}"

    def com_saldo(self, quantidade: int, peso: float) -> "Chapa":
        return replace(self, quantidade=quantidade, peso=peso)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Chapa":
        keys = row.keys()
        return cls(
            id=row["id"],
            codigo=row["codigo"],
            descricao=row["descricao"],
            espessura=float(row["espessura"]),
            largura=float(row["largura"]),
            comprimento=float(row["comprimento"]),
            quantidade=int(row["quantidade"]),
            peso=float(row["peso"]),
            unidade=row["unidade"] or "UN",
            localizacao=row["localizacao"],
            created_at=row["created_at"] if "created_at" in keys else None,
            updated_at=row["updated_at"] if "updated_at" in keys else None,
        )


@dataclass(frozen=True)
class Movimentacao:
    """Registro imutável de entrada ou saída."""
    id: str
    chapa_id: str
    tipo: str                        # 'entrada' | 'saida'
    quantidade: int
    usuario_id: Optional[str] = None
    observacao: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def sinal(self) -> int:
        return 1 if self.tipo == TIPO_ENTRADA else -1

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Movimentacao":
        return cls(
            id=row["id"],
            chapa_id=row["chapa_id"],
            tipo=row["tipo"],
            quantidade=int(row["quantidade"]),
            usuario_id=row["usuario_id"],
            observacao=row["observacao"],
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class ResultadoMovimentacao:
    """Retorno do registro de uma movimentação."""
    movimentacao: Movimentacao
    chapa: Chapa
    peso_movimentado: float


@dataclass
class Estatisticas:
    """Resumo exibido no topo do painel."""
    total_chapas: int = 0
    total_quantidade: int = 0
    entradas_mes: int = 0
    saidas_mes: int = 0


def _fmt_num(v: float) -> str:
    # 3.0 -> "3", 2.5 -> "2.5"
    f = float(v)
    return str(int(f)) if f.is_integer() else f"{f:g}"
