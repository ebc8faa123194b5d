# orcamentos/adapters/planilhas.py
"""
Exportação dos orçamentos para planilha (XLSX ou CSV) usando pandas.

- ``.xlsx`` é gravado via openpyxl;
- qualquer outra extensão é gravada como CSV (separador ';', decimal ',')
  para abrir direto no Excel em português.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from orcamentos.domain.models import Orcamento, orcamento_to_dict
from orcamentos.infra.logger import log_file_operation

# Cabeçalhos da planilha (ordem das colunas)
COLUNAS = {
    "id": "ID",
    "criado_em": "Criado em",
    "cliente_nome": "Cliente",
    "cliente_telefone": "Telefone",
    "tipo_servico": "Serviço",
    "material": "Material",
    "tecnica": "Técnica",
    "complexidade": "Complexidade",
    "largura": "Largura",
    "altura": "Altura",
    "unidade": "Unidade",
    "consumo_tinta_ml": "Tinta (mL)",
    "custo_tinta": "Custo tinta",
    "custo_total_estimado": "Custo estimado",
    "preco_final": "Preço final",
    "forma_pagamento": "Pagamento",
    "parcelas": "Parcelas",
    "status": "Status",
    "aprovado_em": "Aprovado em",
    "finalizado_em": "Finalizado em",
    "boleto_emitido": "Boleto emitido",
    "boleto_vencimento": "Vencimento",
    "boleto_pago": "Boleto pago",
    "data_producao": "Data de produção",
    "observacoes": "Observações",
}


def orcamentos_dataframe(orcamentos: Iterable[Orcamento]) -> pd.DataFrame:
    """Monta o DataFrame com as colunas em português."""
    rows = [orcamento_to_dict(o) for o in orcamentos]
    df = pd.DataFrame(rows, columns=list(COLUNAS))
    return df.rename(columns=COLUNAS)


def exportar_orcamentos(orcamentos: Iterable[Orcamento], caminho: str) -> int:
    """Grava a planilha em ``caminho`` e retorna o número de linhas."""
    df = orcamentos_dataframe(orcamentos)
    path = Path(caminho)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False, sheet_name="Orçamentos")
    else:
        df.to_csv(path, index=False, sep=";", decimal=",", encoding="utf-8-sig")
    log_file_operation("export", str(path), rows_processed=len(df))
    return len(df)
