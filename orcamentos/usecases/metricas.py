"""
Métricas do painel (dashboard) calculadas sobre um snapshot de orçamentos.

Nada aqui guarda estado: cada chamada recalcula a partir da lista
recebida. O instante de referência (``agora``) pode ser injetado para
testes; por padrão é o relógio local no momento da chamada.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from orcamentos.config import LIMITE_VENCIMENTOS
from orcamentos.domain.models import Orcamento, StatusOrcamento


def _para_datetime(valor: str) -> datetime:
    # Aceita datas puras (YYYY-MM-DD) e carimbos ISO, inclusive com 'Z';
    # carimbos com fuso são convertidos para o horário local
    d = datetime.fromisoformat(str(valor).replace("Z", "+00:00"))
    if d.tzinfo is not None:
        d = d.astimezone().replace(tzinfo=None)
    return d


def contagem_por_status(orcamentos: Iterable[Orcamento]) -> Dict[str, int]:
    """Contagens de pendentes, aprovados e em produção."""
    c = Counter(o.status for o in orcamentos)
    return {
        "pendentes": c[StatusOrcamento.AGUARDANDO_APROVACAO],
        "aprovados": c[StatusOrcamento.APROVADO],
        "em_producao": c[StatusOrcamento.EM_PRODUCAO],
    }


def faturamento_mensal(orcamentos: Iterable[Orcamento], agora: Optional[datetime] = None) -> float:
    """Soma de ``preco_final`` dos orçamentos criados no mês corrente.

    Orçamentos reprovados não entram na conta.
    """
    agora = agora or datetime.now()
    total = 0.0
    for o in orcamentos:
        if o.status == StatusOrcamento.REPROVADO:
            continue
        criado = _para_datetime(o.criado_em)
        if criado.month == agora.month and criado.year == agora.year:
            total += o.preco_final
    return total


def total_a_receber(orcamentos: Iterable[Orcamento]) -> float:
    """Tudo que não foi reprovado e ainda não teve o boleto confirmado como pago.

    Inclui orçamentos sem boleto emitido.
    """
    return sum(
        o.preco_final
        for o in orcamentos
        if o.status != StatusOrcamento.REPROVADO and not o.boleto_pago
    )


def proximos_vencimentos(orcamentos: Iterable[Orcamento], limite: int = LIMITE_VENCIMENTOS) -> List[Orcamento]:
    """Boletos emitidos e não pagos, do vencimento mais próximo ao mais distante."""
    abertos = [
        o for o in orcamentos
        if o.boleto_emitido and not o.boleto_pago and o.boleto_vencimento
    ]
    abertos.sort(key=lambda o: _para_datetime(o.boleto_vencimento))
    return abertos[:limite]


def servicos_por_tipo(orcamentos: Iterable[Orcamento]) -> Dict[str, int]:
    """Quantidade de orçamentos por tipo de serviço."""
    return dict(Counter(o.tipo_servico for o in orcamentos))


def painel(orcamentos: Iterable[Orcamento], agora: Optional[datetime] = None) -> Dict[str, Any]:
    """Todas as métricas do painel em um único dicionário."""
    lista = list(orcamentos)
    return {
        **contagem_por_status(lista),
        "faturamento_mensal": faturamento_mensal(lista, agora=agora),
        "total_a_receber": total_a_receber(lista),
        "proximos_vencimentos": proximos_vencimentos(lista),
        "servicos_por_tipo": servicos_por_tipo(lista),
    }
