# chapas/usecases/gerenciar_chapas.py
"""
UC: Cadastro e manutenção de CHAPAS (somente controlador).

- run_cadastro(): cria a chapa com peso total = peso unitário x quantidade,
  sendo o peso unitário informado OU calculado pelas dimensões.
- run_edicao(): altera dados descritivos (nunca quantidade/peso).
- run_exclusao(): remove a chapa e, em cascata, suas movimentações.
- run_correcao(): ajuste manual do saldo fora do ledger, pelo mesmo
  caminho de escrita das movimentações (aplicar_delta + UPDATE condicional).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from chapas.config import DB_PATH, DEFAULTS
from chapas.domain.errors import ChapasError, EntradaInvalida, SaldoDesatualizado
from chapas.domain.formulas import (
    dimensao,
    peso_total_inicial,
    peso_unitario_informado,
    peso_unitario_por_dimensoes,
)
from chapas.domain.models import Chapa, Perfil
from chapas.domain.policies import (
    OP_CADASTRAR,
    OP_CORRIGIR,
    OP_EDITAR,
    OP_EXCLUIR,
    aplicar_delta,
    exigir_ator,
)
from chapas.infra.repositories import ChapaRepo, MovimentacaoRepo
from chapas.infra.logger import (
    log_transaction, log_database_operation, log_system_event, print_system
)


def _texto_obrigatorio(valor: Any, nome: str) -> str:
    s = str(valor).strip() if valor is not None else ""
    if not s:
        raise EntradaInvalida(f"{nome} é obrigatório")
    return s


def _texto_opcional(valor: Any) -> Optional[str]:
    if valor is None:
        return None
    s = str(valor).strip()
    return s or None


def _quantidade_inicial(valor: Any) -> int:
    if valor is None or valor == "":
        return 0
    if isinstance(valor, bool):
        raise EntradaInvalida("Quantidade inicial inválida")
    try:
        f = float(str(valor).replace(",", ".")) if isinstance(valor, str) else float(valor)
    except (TypeError, ValueError):
        raise EntradaInvalida(f"Quantidade inicial inválida: {valor!r}") from None
    if not f.is_integer() or f < 0:
        raise EntradaInvalida("Quantidade inicial deve ser um inteiro maior ou igual a zero")
    return int(f)


def localizar_chapa(ref: str, db_path: str = DB_PATH) -> Chapa:
    """Busca a chapa pelo id ou, se não houver, pelo código."""
    repo = ChapaRepo(db_path)
    chapa = repo.get(ref) or repo.get_by_codigo(ref)
    if chapa is None:
        raise EntradaInvalida(f"Chapa não encontrada: {ref}")
    return chapa


def run_cadastro(
    codigo: str,
    descricao: str,
    espessura: Any,
    largura: Any,
    comprimento: Any,
    quantidade: Any = 0,
    peso_unitario: Any = None,
    unidade: Optional[str] = None,
    localizacao: Optional[str] = None,
    ator: Optional[Perfil] = None,
    db_path: str = DB_PATH,
) -> Chapa:
    """Cadastra uma chapa nova.

    Com ``peso_unitario`` informado ele é usado como está; sem ele o peso
    de uma unidade vem de ``peso_unitario_por_dimensoes``. As dimensões são
    validadas nos dois casos.
    """
    data = {"codigo": codigo, "quantidade": quantidade, "peso_unitario": peso_unitario}
    log_system_event("cadastro_chapa_start", data)
    try:
        exigir_ator(ator, OP_CADASTRAR)
        codigo = _texto_obrigatorio(codigo, "Código")
        descricao = _texto_obrigatorio(descricao, "Descrição")
        qtd = _quantidade_inicial(quantidade)
        peso_dim = peso_unitario_por_dimensoes(espessura, largura, comprimento)
        if peso_unitario is None or peso_unitario == "":
            unitario = peso_dim
        else:
            unitario = peso_unitario_informado(peso_unitario)
        peso = peso_total_inicial(unitario, qtd)

        chapa = ChapaRepo(db_path).insert({
            "codigo": codigo,
            "descricao": descricao,
            "espessura": dimensao(espessura, "Espessura"),
            "largura": dimensao(largura, "Largura"),
            "comprimento": dimensao(comprimento, "Comprimento"),
            "quantidade": qtd,
            "peso": peso,
            "unidade": _texto_opcional(unidade) or DEFAULTS.unidade_padrao,
            "localizacao": _texto_opcional(localizacao),
        })
    except ChapasError as e:
        log_transaction("cadastro_chapa", data, error=str(e))
        raise

    log_database_operation("chapa", "INSERT", 1, codigo=chapa.codigo, peso=chapa.peso)
    log_transaction("cadastro_chapa", data, result={"id": chapa.id, "peso": chapa.peso})
    print_system(f">> Chapa {chapa.codigo} cadastrada: {chapa.quantidade} {chapa.unidade}, {chapa.peso:.2f}kg")
    return chapa


def run_edicao(
    chapa_ref: str,
    campos: Dict[str, Any],
    ator: Optional[Perfil] = None,
    db_path: str = DB_PATH,
) -> Chapa:
    """Altera código, descrição, unidade e/ou localização da chapa."""
    exigir_ator(ator, OP_EDITAR)
    chapa = localizar_chapa(chapa_ref, db_path)

    sets: Dict[str, Any] = {}
    for k in ("codigo", "descricao", "unidade"):
        if campos.get(k) is not None:
            sets[k] = _texto_obrigatorio(campos[k], k.capitalize())
    if "localizacao" in campos:
        sets["localizacao"] = _texto_opcional(campos["localizacao"])
    proibidos = {"quantidade", "peso"} & set(campos)
    if proibidos:
        raise EntradaInvalida("Quantidade e peso só mudam por movimentação ou correção de saldo")
    if not sets:
        return chapa

    n = ChapaRepo(db_path).update_dados(chapa.id, sets)
    log_database_operation("chapa", "UPDATE", n, codigo=chapa.codigo, campos=sorted(sets))
    log_transaction("edicao_chapa", {"chapa": chapa_ref, **sets}, result={"rows": n})
    return localizar_chapa(chapa.id, db_path)


def run_exclusao(chapa_ref: str, ator: Optional[Perfil] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Exclui a chapa; o histórico dela é removido em cascata pelo banco."""
    exigir_ator(ator, OP_EXCLUIR)
    chapa = localizar_chapa(chapa_ref, db_path)
    n_mov = MovimentacaoRepo(db_path).count(chapa_id=chapa.id)
    n = ChapaRepo(db_path).delete(chapa.id)
    log_database_operation("chapa", "DELETE", n, codigo=chapa.codigo, movimentacoes=n_mov)
    log_transaction("exclusao_chapa", {"chapa": chapa_ref}, result={"movimentacoes_removidas": n_mov})
    print_system(f">> Chapa {chapa.codigo} excluída ({n_mov} movimentações removidas)")
    return {"codigo": chapa.codigo, "removida": bool(n), "movimentacoes_removidas": n_mov}


def run_correcao(
    chapa_ref: str,
    quantidade: Optional[int] = None,
    peso: Optional[float] = None,
    ator: Optional[Perfil] = None,
    db_path: str = DB_PATH,
) -> Chapa:
    """Ajusta o saldo para os valores informados sem gerar movimentação.

    Os alvos viram deltas sobre o saldo lido e passam por ``aplicar_delta``
    (piso em zero). A escrita é condicional ao saldo lido; se outro usuário
    mexeu na chapa entretanto, levanta ``SaldoDesatualizado``.
    """
    exigir_ator(ator, OP_CORRIGIR)
    if quantidade is None and peso is None:
        raise EntradaInvalida("Informe a quantidade e/ou o peso corrigidos")
    chapa = localizar_chapa(chapa_ref, db_path)

    dq = (int(quantidade) - chapa.quantidade) if quantidade is not None else 0
    dp = (float(peso) - chapa.peso) if peso is not None else 0.0
    nova = aplicar_delta(chapa, dq, dp)

    ok = ChapaRepo(db_path).atualizar_agregado(
        chapa.id, nova.quantidade, nova.peso,
        esperado_quantidade=chapa.quantidade, esperado_peso=chapa.peso,
    )
    data = {"chapa": chapa_ref, "quantidade": quantidade, "peso": peso}
    if not ok:
        log_transaction("correcao_saldo", data, error="saldo desatualizado")
        raise SaldoDesatualizado(chapa.id)

    log_database_operation("chapa", "UPDATE_SALDO", 1, codigo=chapa.codigo,
                           quantidade=nova.quantidade, peso=nova.peso, origem="correcao")
    log_transaction("correcao_saldo", data,
                    result={"antes": [chapa.quantidade, chapa.peso], "depois": [nova.quantidade, nova.peso]})
    return nova
