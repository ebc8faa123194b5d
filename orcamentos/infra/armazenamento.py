# orcamentos/infra/armazenamento.py
"""
Armazenamento chave/valor dos blobs JSON.

Classes:
- ArmazenamentoChaveValor  (interface: ler / gravar)
- ArmazenamentoSqlite      (tabela ``kv`` do SQLite)
- ArmazenamentoMemoria     (dicionário em memória, usado nos testes)

Os repositórios dependem apenas da interface, então o backend pode ser
trocado sem mexer nas regras de ciclo de vida.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol

from .db import connect
from .migrations import apply_migrations
from .logger import log_database_operation


class ArmazenamentoChaveValor(Protocol):
    def ler(self, chave: str) -> Optional[str]:
        ...

    def gravar(self, chave: str, valor: str) -> None:
        ...


class ArmazenamentoSqlite:
    def __init__(self, db_path: str, migrar: bool = True):
        self.db_path = db_path
        if migrar:
            apply_migrations(db_path)

    def ler(self, chave: str) -> Optional[str]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT valor FROM kv WHERE chave = ?", (chave,)).fetchone()
        log_database_operation(chave, "SELECT", 1 if row else 0)
        return row[0] if row else None

    def gravar(self, chave: str, valor: str) -> None:
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO kv (chave, valor, atualizado_em)
                VALUES (?, ?, ?)
                ON CONFLICT(chave) DO UPDATE SET
                    valor=excluded.valor,
                    atualizado_em=excluded.atualizado_em
                """,
                (chave, valor, datetime.now().isoformat(timespec="seconds")),
            )
        log_database_operation(chave, "UPSERT", 1, bytes=len(valor))

    def chaves(self) -> Dict[str, Optional[str]]:
        """Chaves gravadas e a data da última gravação de cada uma."""
        with connect(self.db_path) as c:
            return dict(c.execute("SELECT chave, atualizado_em FROM kv ORDER BY chave").fetchall())


class ArmazenamentoMemoria:
    def __init__(self, inicial: Optional[Dict[str, str]] = None):
        self.dados: Dict[str, str] = dict(inicial or {})

    def ler(self, chave: str) -> Optional[str]:
        return self.dados.get(chave)

    def gravar(self, chave: str, valor: str) -> None:
        self.dados[chave] = valor
