"""
UC: Relatórios operacionais sobre os orçamentos.

- fila_producao       -> aprovados e em produção (fila da oficina)
- filtrar_financeiro  -> pendentes de aprovação, boletos em aberto ou todos
- ficha_orcamento     -> ficha de texto para impressão/envio ao cliente
"""

from __future__ import annotations

from typing import Iterable, List

from orcamentos.adapters.parsers import formatar_data, formatar_moeda, formatar_numero
from orcamentos.domain.models import Orcamento, StatusOrcamento

FILTROS_FINANCEIRO = ("pendentes", "boletos", "todos")

EMPRESA = "SPAMÍDIA COMUNICAÇÃO VISUAL"


def fila_producao(orcamentos: Iterable[Orcamento]) -> List[Orcamento]:
    return [
        o for o in orcamentos
        if o.status in (StatusOrcamento.APROVADO, StatusOrcamento.EM_PRODUCAO)
    ]


def filtrar_financeiro(orcamentos: Iterable[Orcamento], filtro: str = "pendentes") -> List[Orcamento]:
    """Filtros da tela financeira.

    Args:
        filtro: ``pendentes`` (aguardando aprovação), ``boletos`` (emitidos
            e não pagos) ou ``todos``.
    """
    filtro = (filtro or "").strip().lower()
    if filtro not in FILTROS_FINANCEIRO:
        raise ValueError(f"Filtro inválido: {filtro!r} (use {', '.join(FILTROS_FINANCEIRO)})")
    if filtro == "pendentes":
        return [o for o in orcamentos if o.status == StatusOrcamento.AGUARDANDO_APROVACAO]
    if filtro == "boletos":
        return [o for o in orcamentos if o.boleto_emitido and not o.boleto_pago]
    return list(orcamentos)


def ficha_orcamento(orc: Orcamento) -> str:
    """Monta a ficha do orçamento em texto puro."""
    unidade = orc.unidade or "m"
    pagamento = orc.forma_pagamento.value
    if orc.parcelas:
        pagamento = f"{pagamento} ({orc.parcelas}x)"
    linhas = [
        EMPRESA,
        f"Orçamento #{orc.id[:8]}",
        "-" * 40,
        f"Cliente:   {orc.cliente_nome}",
        f"Telefone:  {orc.cliente_telefone}",
        f"Serviço:   {orc.tipo_servico}",
        f"Material:  {orc.material}",
        f"Medidas:   {formatar_numero(orc.largura)}{unidade} x {formatar_numero(orc.altura)}{unidade}",
        f"Pagamento: {pagamento}",
    ]
    if orc.data_producao:
        linhas.append(f"Produção:  {formatar_data(orc.data_producao)}")
    if orc.observacoes:
        linhas.append(f"Obs.:      {orc.observacoes}")
    linhas += [
        "-" * 40,
        f"Valor Total: {formatar_moeda(orc.preco_final)}",
    ]
    return "\n".join(linhas)
