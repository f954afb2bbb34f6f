# chapas/infra/logger.py
"""
Logs do estoque de chapas.

Quatro arquivos, um por assunto, em ``LOGS_DIR``:

- transactions.log   resultado de cada caso de uso (sucesso ou falha)
- movimentacoes.log  entradas, saídas, rejeições e falhas de reconciliação
- database.log       leituras e escritas nos repositórios
- system.log         eventos de sistema, importações e exportações

Tudo fica desligado por padrão. ``CHAPAS_LOGGING=1`` grava os arquivos e
``CHAPAS_OUTPUT=1`` libera as mensagens no terminal (``print_system``).
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "sim", "yes", "on"}


ENABLE_LOGGING = _env_flag("CHAPAS_LOGGING")
ENABLE_OUTPUT = _env_flag("CHAPAS_OUTPUT")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOGS_DIR = Path(os.environ.get("CHAPAS_LOGS_DIR", str(Path(__file__).parent.parent / "logs")))

LOG_FILES = {
    tipo: LOGS_DIR / f"{tipo}.log"
    for tipo in ("transactions", "movimentacoes", "database", "system")
}


def _ativo() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def print_system(*args, **kwargs):
    """``print`` que só fala com ENABLE_OUTPUT ligado."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """Logger ``name`` gravando em ``log_file``.

    Handlers anteriores são descartados, então chamar de novo apenas
    redireciona o arquivo. Com ``delay=True`` o arquivo nasce na primeira
    mensagem, e importar o pacote não cria nada em disco.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger


transaction_logger = setup_logger('chapas.transactions', str(LOG_FILES["transactions"]))
movimentacao_logger = setup_logger('chapas.movimentacoes', str(LOG_FILES["movimentacoes"]))
database_logger = setup_logger('chapas.database', str(LOG_FILES["database"]))
system_logger = setup_logger('chapas.system', str(LOG_FILES["system"]))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """Desfecho de um caso de uso (``cadastro_chapa``, ``movimentacao_saida``...).

    Com ``error`` a linha sai em nível ERROR e também no terminal.
    """
    if not _ativo():
        return
    if error is None:
        transaction_logger.info(f"OK {operation} | resultado={result} | dados={data}")
        return
    transaction_logger.error(f"TRANSACTION_FAILED: {operation} | erro={error} | dados={data}")
    print_system(f"[ERRO] {operation}: {error}")


def log_movimentacao(action: str, codigo: str, tipo: str, quantidade: Any, **kwargs) -> None:
    """Passo de uma movimentação: ``insert``, ``reject``, ``reconcile_failed``."""
    if not _ativo():
        return
    extra = {"codigo": codigo, "quantidade": quantidade, **kwargs}
    movimentacao_logger.info(f"{str(tipo).upper()}_{action.upper()}: {extra}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    if not _ativo():
        return
    database_logger.info(f"{table}.{operation} linhas={affected_rows} {kwargs or ''}".rstrip())


def log_system_event(event: str, details: Optional[Dict[str, Any]] = None, level: str = "info") -> None:
    """Evento de sistema; ``level`` é o nome do método do logger (info, warning, error, debug)."""
    if not _ativo():
        return
    emitir = getattr(system_logger, level.lower(), system_logger.info)
    emitir(f"{event} {details or {}}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Importação (``import``) ou exportação (``export``) de arquivo."""
    if not _ativo():
        return
    quando = datetime.now().isoformat(timespec="seconds")
    system_logger.info(
        f"ARQUIVO_{operation.upper()} {file_path} linhas={rows_processed} em={quando} {kwargs or ''}".rstrip()
    )


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """Últimas ``lines`` linhas do log ``log_type``; ``None`` com o logging desligado."""
    if not _ativo():
        return None

    arquivo = LOG_FILES.get(log_type)
    if arquivo is None or not arquivo.exists():
        return f"Log {log_type} não encontrado."
    try:
        conteudo = arquivo.read_text(encoding='utf-8').splitlines(keepends=True)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return ''.join(conteudo[-lines:])
