# orcamentos/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- O armazenamento guarda dicionários JSON; as funções ``*_to_dict`` e
  ``*_from_dict`` fazem a conversão preservando todos os campos.
- Enums são serializados pelo seu valor (o texto exibido ao usuário).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional

from orcamentos.config import DEFAULTS


class StatusOrcamento(str, Enum):
    AGUARDANDO_APROVACAO = "Aguardando Aprovação"
    APROVADO = "Aprovado"
    REPROVADO = "Reprovado"
    EM_PRODUCAO = "Em Produção"
    FINALIZADO = "Finalizado"


class FormaPagamento(str, Enum):
    A_VISTA = "À vista"
    CARTAO = "Cartão"
    PIX = "Pix"
    BOLETO_30 = "Boleto 30 dias"
    BOLETO_28 = "Boleto 28 dias"
    BOLETO_30_60 = "Boleto 30/60 dias"
    PARCELADO = "Parcelado"


class Complexidade(str, Enum):
    BAIXA = "Baixa"
    MEDIA = "Média"
    ALTA = "Alta"


@dataclass
class Configuracoes:
    """Parâmetros de cálculo e credencial do serviço de IA."""
    custo_tinta_ml: float = DEFAULTS.custo_tinta_ml
    fator_consumo_tinta: float = DEFAULTS.fator_consumo_tinta
    chave_api: str = DEFAULTS.chave_api


@dataclass
class NovoOrcamento:
    """Dados de entrada para criar um orçamento."""
    cliente_nome: str
    cliente_telefone: str
    tipo_servico: str
    largura: float
    altura: float
    material: str = ""
    tecnica: str = ""
    complexidade: Complexidade = Complexidade.BAIXA
    data_producao: Optional[str] = None
    observacoes: str = ""
    forma_pagamento: FormaPagamento = FormaPagamento.A_VISTA
    parcelas: Optional[int] = None
    unidade: str = "m"                  # 'm' | 'cm'
    custo_adicional: float = 0.0        # material, mão de obra etc.
    preco_manual: Optional[float] = None


@dataclass
class Orcamento:
    """Orçamento ("budget") com ciclo de vida e dados de boleto."""
    id: str
    cliente_nome: str
    cliente_telefone: str
    tipo_servico: str
    largura: float
    altura: float
    unidade: str
    material: str
    tecnica: str
    complexidade: Complexidade
    data_producao: Optional[str]
    observacoes: str
    forma_pagamento: FormaPagamento
    parcelas: Optional[int]

    # Custos calculados na criação
    consumo_tinta_ml: float
    custo_tinta: float
    custo_total_estimado: float
    preco_final: float

    status: StatusOrcamento
    criado_em: str
    aprovado_em: Optional[str] = None
    finalizado_em: Optional[str] = None

    # Financeiro
    boleto_emitido: bool = False
    boleto_vencimento: Optional[str] = None
    boleto_pago: bool = False


def _enum_value(val: Any) -> Any:
    return val.value if isinstance(val, Enum) else val


def orcamento_to_dict(orc: Orcamento) -> Dict[str, Any]:
    return {k: _enum_value(v) for k, v in asdict(orc).items()}


def orcamento_from_dict(data: Dict[str, Any]) -> Orcamento:
    conhecidos = {f.name for f in fields(Orcamento)}
    d = {k: v for k, v in data.items() if k in conhecidos}
    d["complexidade"] = Complexidade(d.get("complexidade", Complexidade.BAIXA.value))
    d["forma_pagamento"] = FormaPagamento(d.get("forma_pagamento", FormaPagamento.A_VISTA.value))
    d["status"] = StatusOrcamento(d.get("status", StatusOrcamento.AGUARDANDO_APROVACAO.value))
    d.setdefault("unidade", "m")
    d.setdefault("material", "")
    d.setdefault("tecnica", "")
    d.setdefault("observacoes", "")
    d.setdefault("data_producao", None)
    d.setdefault("parcelas", None)
    d["boleto_emitido"] = bool(d.get("boleto_emitido", False))
    d["boleto_pago"] = bool(d.get("boleto_pago", False))
    return Orcamento(**d)


def configuracoes_to_dict(cfg: Configuracoes) -> Dict[str, Any]:
    return asdict(cfg)


def configuracoes_from_dict(data: Dict[str, Any]) -> Configuracoes:
    conhecidos = {f.name for f in fields(Configuracoes)}
    return Configuracoes(**{k: v for k, v in data.items() if k in conhecidos})
