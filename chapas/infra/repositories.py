# chapas/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- PerfilRepo
- ChapaRepo
- MovimentacaoRepo

Cada escrita confirmada publica o nome da tabela no canal de alterações
(``chapas.infra.notificacoes``) para que as visões abertas se atualizem.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .db import agora_iso, connect, novo_id
from .notificacoes import CANAL, CanalAlteracoes, publicar_alteracao
from chapas.domain.models import Chapa, Movimentacao, Perfil


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat(timespec="microseconds")


def _rows_as_dicts(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


class _Repo:
    def __init__(self, db_path: str, canal: CanalAlteracoes = CANAL):
        self.db_path = db_path
        self.canal = canal


# -------------------------
# Perfil
# -------------------------

class PerfilRepo(_Repo):
    def insert(self, row: Dict[str, Any]) -> Perfil:
        r = _as_dict(row)
        r["id"] = r.get("id") or novo_id()
        with connect(self.db_path) as c:
            c.execute(
                "INSERT INTO perfil (id, nome, papel) VALUES (:id, :nome, :papel)",
                {"id": r["id"], "nome": r["nome"], "papel": r["papel"]},
            )
        publicar_alteracao(self.canal, "perfil")
        return Perfil(id=r["id"], nome=r["nome"], papel=r["papel"])

    def get(self, perfil_id: str) -> Optional[Perfil]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT id, nome, papel FROM perfil WHERE id = ?", (perfil_id,)).fetchone()
            return Perfil.from_row(row) if row else None

    def get_by_nome(self, nome: str) -> Optional[Perfil]:
        with connect(self.db_path) as c:
            row = c.execute(
                "SELECT id, nome, papel FROM perfil WHERE lower(nome) = lower(?) ORDER BY id LIMIT 1",
                (nome,),
            ).fetchone()
            return Perfil.from_row(row) if row else None

    def resolve(self, ident: str) -> Optional[Perfil]:
        """Localiza um perfil pelo id ou, se não houver, pelo nome."""
        if not ident:
            return None
        return self.get(ident) or self.get_by_nome(ident)

    def get_all(self) -> List[Perfil]:
        with connect(self.db_path) as c:
            cur = c.execute("SELECT id, nome, papel FROM perfil ORDER BY nome")
            return [Perfil.from_row(r) for r in cur.fetchall()]


# -------------------------
# Chapa
# -------------------------

_CHAPA_COLS = """id, codigo, descricao, espessura, largura, comprimento, unidade,
                 localizacao, quantidade, peso, created_at, updated_at"""

_CAMPOS_EDITAVEIS = ("codigo", "descricao", "unidade", "localizacao")


class ChapaRepo(_Repo):
    def insert(self, row: Dict[str, Any]) -> Chapa:
        r = _as_dict(row)
        payload = {
            "id": r.get("id") or novo_id(),
            "codigo": r["codigo"],
            "descricao": r["descricao"],
            "espessura": float(r["espessura"]),
            "largura": float(r["largura"]),
            "comprimento": float(r["comprimento"]),
            "unidade": r.get("unidade") or "UN",
            "localizacao": r.get("localizacao"),
            "quantidade": int(r.get("quantidade") or 0),
            "peso": float(r.get("peso") or 0.0),
            "created_at": r.get("created_at") or agora_iso(),
        }
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO chapa
                    (id, codigo, descricao, espessura, largura, comprimento,
                     unidade, localizacao, quantidade, peso, created_at)
                VALUES
                    (:id, :codigo, :descricao, :espessura, :largura, :comprimento,
                     :unidade, :localizacao, :quantidade, :peso, :created_at)
                """,
                payload,
            )
        publicar_alteracao(self.canal, "chapa")
        return Chapa(**payload)

    def get(self, chapa_id: str) -> Optional[Chapa]:
        with connect(self.db_path) as c:
            row = c.execute(f"SELECT {_CHAPA_COLS} FROM chapa WHERE id = ?", (chapa_id,)).fetchone()
            return Chapa.from_row(row) if row else None

    def get_by_codigo(self, codigo: str) -> Optional[Chapa]:
        # codigo não é único no banco; devolve a chapa mais antiga com esse código
        with connect(self.db_path) as c:
            row = c.execute(
                f"SELECT {_CHAPA_COLS} FROM chapa WHERE codigo = ? ORDER BY created_at LIMIT 1",
                (codigo,),
            ).fetchone()
            return Chapa.from_row(row) if row else None

    def get_all(self) -> List[Chapa]:
        with connect(self.db_path) as c:
            cur = c.execute(f"SELECT {_CHAPA_COLS} FROM chapa ORDER BY codigo ASC")
            return [Chapa.from_row(r) for r in cur.fetchall()]

    def update_dados(self, chapa_id: str, campos: Dict[str, Any]) -> int:
        """Atualiza dados descritivos. Quantidade e peso não passam por aqui."""
        sets = {k: v for k, v in campos.items() if k in _CAMPOS_EDITAVEIS}
        if not sets:
            return 0
        assign = ", ".join(f"{k} = :{k}" for k in sets)
        with connect(self.db_path) as c:
            cur = c.execute(f"UPDATE chapa SET {assign} WHERE id = :id", {**sets, "id": chapa_id})
            n = cur.rowcount
        if n:
            publicar_alteracao(self.canal, "chapa")
        return n

    def atualizar_agregado(
        self,
        chapa_id: str,
        quantidade: int,
        peso: float,
        esperado_quantidade: Optional[int] = None,
        esperado_peso: Optional[float] = None,
    ) -> bool:
        """Grava o saldo (quantidade/peso) da chapa.

        Com ``esperado_*`` informados a escrita é condicional: só acontece
        se o saldo no banco ainda for o que foi lido. Retorna ``False``
        quando nenhuma linha foi alterada (chapa removida ou saldo mudou).
        """
        sql = "UPDATE chapa SET quantidade = ?, peso = ?, updated_at = ? WHERE id = ?"
        params: List[Any] = [int(quantidade), float(peso), agora_iso(), chapa_id]
        if esperado_quantidade is not None:
            sql += " AND quantidade = ?"
            params.append(int(esperado_quantidade))
        if esperado_peso is not None:
            sql += " AND peso = ?"
            params.append(float(esperado_peso))
        with connect(self.db_path) as c:
            cur = c.execute(sql, params)
            ok = cur.rowcount == 1
        if ok:
            publicar_alteracao(self.canal, "chapa")
        return ok

    def delete(self, chapa_id: str) -> int:
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM chapa WHERE id = ?", (chapa_id,))
            n = cur.rowcount
        if n:
            publicar_alteracao(self.canal, "chapa", "movimentacao")
        return n

    def resumo(self) -> Dict[str, Any]:
        with connect(self.db_path) as c:
            cur = c.execute("SELECT total_chapas, total_quantidade, total_peso FROM vw_estoque_resumo")
            return _rows_as_dicts(cur)[0]


# -------------------------
# Movimentação (ledger)
# -------------------------

_MOV_COLS = "id, chapa_id, usuario_id, tipo, quantidade, observacao, created_at"


def _filtros(
    inicio: Optional[datetime],
    fim: Optional[datetime],
    tipo: Optional[str],
    chapa_id: Optional[str],
    prefixo: str = "",
):
    where: List[str] = []
    params: List[Any] = []
    if inicio is not None:
        where.append(f"{prefixo}created_at >= ?")
        params.append(_iso(inicio))
    if fim is not None:
        where.append(f"{prefixo}created_at <= ?")
        params.append(_iso(fim))
    if tipo:
        where.append(f"{prefixo}tipo = ?")
        params.append(tipo)
    if chapa_id:
        where.append(f"{prefixo}chapa_id = ?")
        params.append(chapa_id)
    clause = (" WHERE " + " AND ".join(where)) if where else ""
    return clause, params


class MovimentacaoRepo(_Repo):
    def insert(self, row: Dict[str, Any]) -> Movimentacao:
        r = _as_dict(row)
        payload = {
            "id": r.get("id") or novo_id(),
            "chapa_id": r["chapa_id"],
            "usuario_id": r.get("usuario_id"),
            "tipo": r["tipo"],
            "quantidade": int(r["quantidade"]),
            "observacao": r.get("observacao"),
            "created_at": r.get("created_at") or agora_iso(),
        }
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO movimentacao
                    (id, chapa_id, usuario_id, tipo, quantidade, observacao, created_at)
                VALUES
                    (:id, :chapa_id, :usuario_id, :tipo, :quantidade, :observacao, :created_at)
                """,
                payload,
            )
        publicar_alteracao(self.canal, "movimentacao")
        return Movimentacao(**payload)

    def get(self, mov_id: str) -> Optional[Movimentacao]:
        with connect(self.db_path) as c:
            row = c.execute(f"SELECT {_MOV_COLS} FROM movimentacao WHERE id = ?", (mov_id,)).fetchone()
            return Movimentacao.from_row(row) if row else None

    def count(self, chapa_id: Optional[str] = None) -> int:
        clause, params = _filtros(None, None, None, chapa_id)
        with connect(self.db_path) as c:
            return int(c.execute(f"SELECT COUNT(*) FROM movimentacao{clause}", params).fetchone()[0])

    def listar(
        self,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        tipo: Optional[str] = None,
        chapa_id: Optional[str] = None,
        limite: Optional[int] = None,
    ) -> List[Movimentacao]:
        """Movimentações filtradas, mais recentes primeiro."""
        clause, params = _filtros(inicio, fim, tipo, chapa_id)
        sql = f"SELECT {_MOV_COLS} FROM movimentacao{clause} ORDER BY created_at DESC"
        if limite is not None:
            sql += " LIMIT ?"
            params.append(int(limite))
        with connect(self.db_path) as c:
            return [Movimentacao.from_row(r) for r in c.execute(sql, params).fetchall()]

    def listar_detalhado(
        self,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        tipo: Optional[str] = None,
        chapa_id: Optional[str] = None,
        limite: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Movimentações com código/descrição da chapa e nome do usuário."""
        clause, params = _filtros(inicio, fim, tipo, chapa_id)
        sql = f"SELECT * FROM vw_movimentacoes_detalhe{clause} ORDER BY created_at DESC"
        if limite is not None:
            sql += " LIMIT ?"
            params.append(int(limite))
        with connect(self.db_path) as c:
            return _rows_as_dicts(c.execute(sql, params))

    def soma_quantidade(self, tipo: str, desde: Optional[datetime] = None) -> int:
        clause, params = _filtros(desde, None, tipo, None)
        with connect(self.db_path) as c:
            row = c.execute(f"SELECT COALESCE(SUM(quantidade), 0) FROM movimentacao{clause}", params).fetchone()
            return int(row[0])
