"""
Canal de notificação de alterações nas tabelas.

Os repositórios publicam o nome da tabela depois de cada escrita
confirmada. O evento não carrega dados: quem assina deve reconsultar a
tabela inteira (ver ``chapas.usecases.atualizar_visao``).
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Callable, Dict, List

from chapas.infra.logger import log_system_event

Callback = Callable[[str], None]


class CanalAlteracoes:
    """Pub/sub em processo, por nome de tabela."""

    def __init__(self) -> None:
        self._assinantes: Dict[str, List[Callback]] = defaultdict(list)
        self._lock = threading.Lock()

    def assinar(self, tabela: str, callback: Callback) -> Callable[[], None]:
        """Registra ``callback`` para a tabela e devolve a função de cancelamento."""
        with self._lock:
            self._assinantes[tabela].append(callback)

        def cancelar() -> None:
            with self._lock:
                lista = self._assinantes.get(tabela, [])
                if callback in lista:
                    lista.remove(callback)

        return cancelar

    def publicar(self, tabela: str) -> None:
        with self._lock:
            callbacks = list(self._assinantes.get(tabela, []))
        for cb in callbacks:
            cb(tabela)

    def total_assinantes(self, tabela: str) -> int:
        with self._lock:
            return len(self._assinantes.get(tabela, []))


# Canal padrão do processo, usado pelos repositórios
CANAL = CanalAlteracoes()


def publicar_alteracao(canal: CanalAlteracoes, *tabelas: str) -> None:
    for t in tabelas:
        log_system_event("table_changed", {"tabela": t}, level="debug")
        canal.publicar(t)
