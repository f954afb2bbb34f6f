# chapas/usecases/atualizar_visao.py
"""
Atualização das visões abertas (lista de chapas, histórico) a partir do
canal de alterações.

Cada aviso do canal só invalida a visão. Avisos em sequência são
agrupados: a recarga roda ``atraso`` segundos depois do ÚLTIMO aviso, e
nunca há duas recargas ao mesmo tempo. Um aviso que chega durante uma
recarga marca outra rodada, feita logo que a atual termina.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional, Sequence

from chapas.config import DEFAULTS
from chapas.infra.notificacoes import CANAL, CanalAlteracoes
from chapas.infra.logger import log_system_event

TABELAS_PADRAO = ("chapa", "movimentacao")


class AtualizadorVisao:
    def __init__(
        self,
        recarregar: Callable[[], None],
        canal: CanalAlteracoes = CANAL,
        tabelas: Sequence[str] = TABELAS_PADRAO,
        atraso: float = DEFAULTS.atraso_atualizacao,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.recarregar = recarregar
        self.canal = canal
        self.tabelas = tuple(tabelas)
        self.atraso = float(atraso)
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._em_execucao = False
        self._pendente = False
        self._cancelamentos: List[Callable[[], None]] = []
        self.execucoes = 0

    # ciclo de vida

    def iniciar(self) -> "AtualizadorVisao":
        if not self._cancelamentos:
            self._cancelamentos = [self.canal.assinar(t, self.notificar) for t in self.tabelas]
        return self

    def parar(self) -> None:
        for cancelar in self._cancelamentos:
            cancelar()
        self._cancelamentos = []
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pendente = False

    @property
    def ativo(self) -> bool:
        return bool(self._cancelamentos)

    # eventos

    def notificar(self, tabela: Optional[str] = None) -> None:
        """Recebe um aviso do canal e (re)agenda a recarga."""
        if self.atraso <= 0:
            self._executar()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._timer_factory(self.atraso, self._executar)
            self._timer.daemon = True
            self._timer.start()

    def atualizar_agora(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._executar()

    def _executar(self) -> None:
        with self._lock:
            self._timer = None
            if self._em_execucao:
                self._pendente = True
                return
            self._em_execucao = True

        while True:
            try:
                self.recarregar()
                self.execucoes += 1
            except Exception as e:
                # a recarga roda na thread do timer; o erro fica no log e a visão segue
                log_system_event("atualizacao_visao_error", {"error": str(e)}, level="error")
            with self._lock:
                if not self._pendente:
                    self._em_execucao = False
                    return
                self._pendente = False
