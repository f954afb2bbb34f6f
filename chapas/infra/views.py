# chapas/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_movimentacoes_detalhe: movimentação + código/descrição/saldo atual da
  chapa + nome do usuário (leitura usada pelo histórico e relatórios).
- vw_estoque_resumo:        totais de chapas cadastradas e unidades em estoque.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- Um conjunto de índices úteis também é criado, caso não existam.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_movimentacoes_detalhe;
            CREATE VIEW vw_movimentacoes_detalhe AS
            SELECT
                m.id,
                m.chapa_id,
                m.usuario_id,
                m.tipo,
                m.quantidade,
                m.observacao,
                m.created_at,
                c.codigo      AS chapa_codigo,
                c.descricao   AS chapa_descricao,
                c.quantidade  AS chapa_quantidade,
                c.peso        AS chapa_peso,
                p.nome        AS usuario_nome
            FROM movimentacao m
            JOIN chapa c        ON c.id = m.chapa_id
            LEFT JOIN perfil p  ON p.id = m.usuario_id;

            DROP VIEW IF EXISTS vw_estoque_resumo;
            CREATE VIEW vw_estoque_resumo AS
            SELECT
                COUNT(*)                      AS total_chapas,
                COALESCE(SUM(quantidade), 0)  AS total_quantidade,
                COALESCE(SUM(peso), 0.0)      AS total_peso
            FROM chapa;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_chapa_codigo        ON chapa(codigo);
            CREATE INDEX IF NOT EXISTS idx_mov_created_at      ON movimentacao(created_at);
            CREATE INDEX IF NOT EXISTS idx_mov_chapa           ON movimentacao(chapa_id);
            CREATE INDEX IF NOT EXISTS idx_mov_tipo_created_at ON movimentacao(tipo, created_at);
            """
        )
