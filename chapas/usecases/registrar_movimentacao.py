"""
UC: Registrar MOVIMENTAÇÕES (entrada/saída) de chapas.

- registrar_movimentacao(): valida, grava o ledger e reconcilia o saldo a
  partir de um snapshot da chapa.
- run_movimentacao(): relê a chapa (por id ou código) e registra.
- run_movimentacao_lote(path): lê XLSX com o adapter e registra linha a
  linha, acumulando erros por linha.

Ordem das escritas:
  1. INSERT da movimentação (o histórico existe mesmo se o passo 4 falhar)
  2. nova quantidade = atual ± quantidade
  3. novo peso = atual ± peso movimentado, com piso em zero
  4. UPDATE condicional do saldo da chapa (esperando o saldo lido)

Não há transação envolvendo 1 e 4. Se 4 falhar, ou se outro usuário
alterou o saldo entre a leitura e a escrita, a operação termina em
``FalhaReconciliacao`` e a movimentação já gravada permanece.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from chapas.config import DB_PATH
from chapas.adapters.planilhas import load_movimentacoes_from_xlsx
from chapas.domain.errors import ChapasError, EntradaInvalida, EstoqueInsuficiente, FalhaReconciliacao
from chapas.domain.formulas import peso_movimentado
from chapas.domain.models import TIPO_ENTRADA, TIPO_SAIDA, Chapa, Perfil, ResultadoMovimentacao
from chapas.domain.policies import aplicar_delta, exigir_ator, validar_quantidade, validar_tipo
from chapas.infra.repositories import ChapaRepo, MovimentacaoRepo
from chapas.usecases.gerenciar_chapas import localizar_chapa
from chapas.infra.logger import (
    log_transaction, log_movimentacao, log_database_operation,
    log_system_event, log_file_operation, print_system
)


def _normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def registrar_movimentacao(
    chapa: Chapa,
    tipo: str,
    quantidade: Any,
    observacao: Optional[str],
    ator: Optional[Perfil],
    db_path: str = DB_PATH,
) -> ResultadoMovimentacao:
    """Registra uma entrada ou saída sobre o snapshot ``chapa``.

    Raises:
        EntradaInvalida: quantidade não inteira/positiva ou tipo desconhecido.
        EstoqueInsuficiente: saída maior que ``chapa.quantidade``.
        AcessoNegado: papel do ator não permite o tipo de movimentação.
        FalhaReconciliacao: ledger gravado mas saldo não atualizado.
    """
    tipo = validar_tipo(tipo)
    qtd = validar_quantidade(quantidade)
    exigir_ator(ator, tipo)

    if tipo == TIPO_SAIDA and qtd > chapa.quantidade:
        log_movimentacao("reject", chapa.codigo, tipo, qtd, disponivel=chapa.quantidade)
        raise EstoqueInsuficiente(chapa.quantidade, qtd)

    peso_mov = peso_movimentado(chapa.quantidade, chapa.peso, qtd)
    sinal = 1 if tipo == TIPO_ENTRADA else -1

    try:
        mov = MovimentacaoRepo(db_path).insert({
            "chapa_id": chapa.id,
            "usuario_id": ator.id,
            "tipo": tipo,
            "quantidade": qtd,
            "observacao": _normalize_str(observacao),
        })
    except sqlite3.IntegrityError as e:
        # chapa removida entre a leitura e o INSERT (FK de movimentacao.chapa_id)
        raise EntradaInvalida(f"Chapa não encontrada: {chapa.codigo}") from e
    log_database_operation("movimentacao", "INSERT", 1, id=mov.id, codigo=chapa.codigo)
    log_movimentacao("insert", chapa.codigo, tipo, qtd, peso=peso_mov, usuario=ator.nome)

    nova = aplicar_delta(chapa, sinal * qtd, sinal * peso_mov)

    try:
        ok = ChapaRepo(db_path).atualizar_agregado(
            chapa.id,
            nova.quantidade,
            nova.peso,
            esperado_quantidade=chapa.quantidade,
            esperado_peso=chapa.peso,
        )
    except sqlite3.Error as e:
        log_movimentacao("reconcile_failed", chapa.codigo, tipo, qtd, movimentacao_id=mov.id, error=str(e))
        raise FalhaReconciliacao(mov.id, chapa.id, str(e)) from e
    if not ok:
        motivo = "saldo alterado por outra operação ou chapa removida"
        log_movimentacao("reconcile_failed", chapa.codigo, tipo, qtd, movimentacao_id=mov.id, error=motivo)
        raise FalhaReconciliacao(mov.id, chapa.id, motivo)

    log_database_operation("chapa", "UPDATE_SALDO", 1, codigo=chapa.codigo,
                           quantidade=nova.quantidade, peso=nova.peso)
    return ResultadoMovimentacao(movimentacao=mov, chapa=nova, peso_movimentado=peso_mov)


def run_movimentacao(
    chapa_ref: str,
    tipo: str,
    quantidade: Any,
    observacao: Optional[str] = None,
    ator: Optional[Perfil] = None,
    db_path: str = DB_PATH,
) -> ResultadoMovimentacao:
    """Relê a chapa (id ou código) e registra a movimentação."""
    log_system_event("movimentacao_start", {"chapa": chapa_ref, "tipo": tipo, "quantidade": quantidade})
    data = {"chapa": chapa_ref, "tipo": tipo, "quantidade": quantidade,
            "usuario": ator.nome if ator else None}
    try:
        chapa = localizar_chapa(chapa_ref, db_path)
        res = registrar_movimentacao(chapa, tipo, quantidade, observacao, ator, db_path=db_path)
    except ChapasError as e:
        log_transaction(f"movimentacao_{tipo}", data, error=str(e))
        level = "error" if isinstance(e, FalhaReconciliacao) else "warning"
        log_system_event("movimentacao_error", {"chapa": chapa_ref, "error": str(e)}, level=level)
        raise

    acao = "adicionados" if res.movimentacao.tipo == TIPO_ENTRADA else "retirados"
    print_system(f">> {res.movimentacao.quantidade} unidades e {res.peso_movimentado:.2f}kg {acao} com sucesso.")
    log_transaction(
        f"movimentacao_{res.movimentacao.tipo}", data,
        result={"movimentacao_id": res.movimentacao.id,
                "quantidade": res.chapa.quantidade, "peso": res.chapa.peso},
    )
    return res


def run_entrada(chapa_ref: str, quantidade: Any, observacao: Optional[str] = None,
                ator: Optional[Perfil] = None, db_path: str = DB_PATH) -> ResultadoMovimentacao:
    return run_movimentacao(chapa_ref, TIPO_ENTRADA, quantidade, observacao, ator, db_path)


def run_saida(chapa_ref: str, quantidade: Any, observacao: Optional[str] = None,
              ator: Optional[Perfil] = None, db_path: str = DB_PATH) -> ResultadoMovimentacao:
    return run_movimentacao(chapa_ref, TIPO_SAIDA, quantidade, observacao, ator, db_path)


def run_movimentacao_lote(path: str, ator: Optional[Perfil], db_path: str = DB_PATH) -> Dict[str, Any]:
    """Lê um XLSX de movimentações e registra todas as linhas válidas.

    Cada linha é processada isoladamente (relendo o saldo da chapa); as
    linhas com erro não interrompem o lote e aparecem em ``erros``.
    """
    log_system_event("movimentacao_lote_start", {"file_path": path})
    rows: List[Dict[str, Any]] = load_movimentacoes_from_xlsx(path)
    log_file_operation("import", path, rows_processed=len(rows))

    erros: List[Dict[str, Any]] = []
    registros: List[Dict[str, Any]] = []
    for i, row in enumerate(rows, start=2):  # linha 1 é o cabeçalho
        try:
            if not row.get("codigo"):
                raise EntradaInvalida("Código da chapa não informado")
            res = run_movimentacao(
                row["codigo"], row.get("tipo") or "", row.get("quantidade"),
                row.get("observacao"), ator, db_path=db_path,
            )
        except ChapasError as e:
            erros.append({"linha": i, "mensagem": str(e)})
            continue
        registros.append({
            "linha": i,
            "codigo": row["codigo"],
            "tipo": res.movimentacao.tipo,
            "quantidade": res.movimentacao.quantidade,
        })

    result = {
        "tipo": "Movimentações",
        "arquivo": path,
        "total": len(rows),
        "sucessos": len(registros),
        "erros": erros,
        "registros": registros,
    }
    log_transaction("movimentacao_lote", {"file": path, "rows_count": len(rows)},
                    result={"sucessos": len(registros), "erros": len(erros)})
    log_system_event("movimentacao_lote_success", {"file_path": path, "rows_inserted": len(registros)})
    return result
