"""
Políticas do ciclo de vida dos orçamentos.

Este módulo contém a tabela de transições de status e as regras que
decidem quais carimbos de data são aplicados ao entrar em um status.
As funções aqui expostas são usadas pelo repositório de orçamentos, que
é o único a alterar o status de um orçamento.

Fluxo:
    Aguardando Aprovação -> Aprovado | Reprovado
    Aprovado -> Em Produção
    Em Produção -> Finalizado

``Reprovado`` e ``Finalizado`` são terminais.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from orcamentos.domain.models import StatusOrcamento

TRANSICOES: Dict[StatusOrcamento, FrozenSet[StatusOrcamento]] = {
    StatusOrcamento.AGUARDANDO_APROVACAO: frozenset(
        {StatusOrcamento.APROVADO, StatusOrcamento.REPROVADO}
    ),
    StatusOrcamento.APROVADO: frozenset({StatusOrcamento.EM_PRODUCAO}),
    StatusOrcamento.EM_PRODUCAO: frozenset({StatusOrcamento.FINALIZADO}),
    StatusOrcamento.REPROVADO: frozenset(),
    StatusOrcamento.FINALIZADO: frozenset(),
}


def status_terminal(status: StatusOrcamento) -> bool:
    return not TRANSICOES[StatusOrcamento(status)]


def transicao_permitida(atual: StatusOrcamento, novo: StatusOrcamento) -> bool:
    """Indica se ``atual -> novo`` é uma aresta válida do ciclo de vida.

    Reentrar no mesmo status é aceito (não altera nada no orçamento).
    """
    atual = StatusOrcamento(atual)
    novo = StatusOrcamento(novo)
    if atual == novo:
        return True
    return novo in TRANSICOES[atual]


def proximo_status(atual: StatusOrcamento) -> Optional[StatusOrcamento]:
    """Próximo passo de produção (coluna da fila de produção na CLI).

    Retorna ``None`` para status sem avanço único (pendente e terminais).
    """
    atual = StatusOrcamento(atual)
    if atual == StatusOrcamento.APROVADO:
        return StatusOrcamento.EM_PRODUCAO
    if atual == StatusOrcamento.EM_PRODUCAO:
        return StatusOrcamento.FINALIZADO
    return None


def carimbar_aprovacao(novo: StatusOrcamento, aprovado_em: Optional[str]) -> bool:
    """Entrar em Aprovado carimba ``aprovado_em`` apenas uma vez."""
    return StatusOrcamento(novo) == StatusOrcamento.APROVADO and not aprovado_em


def carimbar_finalizacao(novo: StatusOrcamento, finalizado_em: Optional[str]) -> bool:
    """Entrar em Finalizado carimba ``finalizado_em`` apenas uma vez."""
    return StatusOrcamento(novo) == StatusOrcamento.FINALIZADO and not finalizado_em
