"""
Utilidades de parsing e formatação para a entrada e saída da CLI.

Este módulo interpreta datas e valores digitados no formato brasileiro
(por exemplo, "15/11/2025" e "1.234,56") e formata valores monetários
no padrão de exibição fixo do sistema ("R$ 1.234,56").
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")

_FORMATOS_DATA = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y")


def parse_data(txt: Optional[str]) -> Optional[str]:
    """Converte uma data digitada para ISO (YYYY-MM-DD).

    Exemplos:
        "2025-11-15" → "2025-11-15"
        "15/11/2025" → "2025-11-15"
        ""           → None

    Levanta ``ValueError`` se o texto não for uma data reconhecida.
    """
    if txt is None:
        return None
    s = str(txt).strip()
    if not s:
        return None
    for fmt in _FORMATOS_DATA:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    raise ValueError(f"Data inválida: {txt!r}")


def parse_valor(txt: Optional[str]) -> Optional[float]:
    """Interpreta um valor numérico com vírgula ou ponto decimal.

    Exemplos:
        "1.234,56"  → 1234.56
        "R$ 48,75"  → 48.75
        "48.75"     → 48.75
        "abc"       → None
    """
    if txt is None:
        return None
    m = _NUM_RE.search(str(txt))
    if not m:
        return None
    s = m.group(0)
    if "," in s:
        # formato brasileiro: ponto separa milhar, vírgula separa decimal
        s = s.replace(".", "").replace(",", ".")
    try:
        return float(s)
    except ValueError:
        return None


def formatar_numero(valor: float, casas: int = 2) -> str:
    """1234.5 → "1.234,50"."""
    return f"{valor:,.{casas}f}".replace(",", "X").replace(".", ",").replace("X", ".")


def formatar_moeda(valor: float) -> str:
    return f"R$ {formatar_numero(valor)}"


def formatar_data(valor: Optional[str]) -> str:
    """ISO → DD/MM/AAAA (texto vazio para ``None``)."""
    if not valor:
        return ""
    try:
        return datetime.fromisoformat(str(valor)).strftime("%d/%m/%Y")
    except ValueError:
        return str(valor)

