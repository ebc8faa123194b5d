# orcamentos/infra/db.py
"""
Conexão SQLite usada pelo armazenamento chave/valor.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager que abre o banco em ``db_path``:
    - cria a pasta do arquivo se necessário
    - commit ao sair (rollback em caso de exceção)
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
