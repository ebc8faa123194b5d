# orcamentos/domain/erros.py
"""
Exceções do domínio de orçamentos.

Nenhuma delas é fatal: a CLI as captura e encerra o comando com código 1,
e o adaptador de IA converte ``ServicoExternoErro`` em resposta padrão.
"""

from __future__ import annotations


class OrcamentosErro(Exception):
    """Base para os erros do sistema."""


class OrcamentoNaoEncontrado(OrcamentosErro, LookupError):
    def __init__(self, orcamento_id: str):
        super().__init__(f"Orçamento não encontrado: {orcamento_id}")
        self.orcamento_id = orcamento_id


class TransicaoInvalida(OrcamentosErro, ValueError):
    def __init__(self, atual: str, novo: str):
        super().__init__(f"Transição de status inválida: {atual} -> {novo}")
        self.atual = atual
        self.novo = novo


class BoletoNaoEmitido(OrcamentosErro, ValueError):
    def __init__(self, orcamento_id: str):
        super().__init__(f"Boleto ainda não emitido para o orçamento {orcamento_id}")
        self.orcamento_id = orcamento_id


class ServicoExternoErro(OrcamentosErro, RuntimeError):
    """Falha de transporte, autenticação ou resposta do serviço de IA."""


class DataInvalida(OrcamentosErro, ValueError):
    def __init__(self, valor: object):
        super().__init__(f"Data inválida: {valor!r} (use AAAA-MM-DD ou DD/MM/AAAA)")
        self.valor = valor
