# chapas/config.py
"""
Configurações globais e valores padrão do sistema de estoque de chapas.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("CHAPAS_DB", os.path.join(os.getcwd(), "chapas.db"))

# Diretório onde os arquivos exportados são gravados
EXPORT_DIR = os.environ.get("CHAPAS_EXPORT_DIR", os.getcwd())


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    fator_densidade: float = 0.0000144  # kg por mm³ (densidade x conversão de unidade)
    limite_periodo: int = 20            # linhas no histórico quando há período definido
    limite_todos: int = 500             # teto de linhas quando o período é 'todos'
    atraso_atualizacao: float = 0.25    # debounce (s) da atualização da visão
    estoque_baixo: int = 10             # abaixo disso a chapa é marcada como BAIXO
    unidade_padrao: str = "UN"


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
