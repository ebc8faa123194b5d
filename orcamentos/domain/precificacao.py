"""
Fórmulas de precificação de impressão.

Dadas as dimensões da peça, os parâmetros de tinta e a complexidade do
serviço, estas funções calculam consumo e custo de tinta, custo total
estimado e preço sugerido. O preço final é o valor manual informado
pelo vendedor, quando positivo, ou o preço sugerido.

Todas as funções são puras: dependem apenas das entradas e não fazem
validação. Dimensões nulas ou negativas resultam em valores derivados
zerados.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from orcamentos.domain.models import Complexidade

Numero = Union[int, float]

MULTIPLICADORES = {
    Complexidade.BAIXA: 2.0,
    Complexidade.MEDIA: 2.5,
    Complexidade.ALTA: 3.0,
}
MULTIPLICADOR_PADRAO = 2.0


@dataclass(frozen=True)
class Precificacao:
    area: float
    consumo_tinta_ml: float
    custo_tinta: float
    custo_total_estimado: float
    preco_sugerido: float
    preco_final: float


def para_metros(valor: Numero, unidade: str = "m") -> float:
    """Converte uma medida para metros (aceita 'm' e 'cm')."""
    v = float(valor)
    if str(unidade).strip().lower() == "cm":
        return v / 100.0
    return v


def area_m2(largura: Numero, altura: Numero, unidade: str = "m") -> float:
    """Área da peça em m².

    Dimensões negativas são tratadas como zero.
    """
    largura_m = max(0.0, para_metros(largura, unidade))
    altura_m = max(0.0, para_metros(altura, unidade))
    return largura_m * altura_m


def consumo_tinta(area: Numero, fator_consumo_tinta: Numero) -> float:
    """Consumo de tinta em mL: ``area * fator`` (fator em mL/m²)."""
    return float(area) * float(fator_consumo_tinta)


def custo_tinta(consumo_ml: Numero, custo_tinta_ml: Numero) -> float:
    return float(consumo_ml) * float(custo_tinta_ml)


def custo_total_estimado(custo_da_tinta: Numero, custo_adicional: Numero = 0.0) -> float:
    return float(custo_da_tinta) + float(custo_adicional or 0.0)


def multiplicador(complexidade: Union[Complexidade, str, None]) -> float:
    """Multiplicador de margem pela complexidade (Baixa é o padrão)."""
    try:
        return MULTIPLICADORES[Complexidade(complexidade)]
    except ValueError:
        return MULTIPLICADOR_PADRAO


def preco_sugerido(
    custo_da_tinta: Numero,
    custo_adicional: Numero,
    complexidade: Union[Complexidade, str, None],
) -> float:
    return (float(custo_da_tinta) + float(custo_adicional or 0.0)) * multiplicador(complexidade)


def preco_final(sugerido: Numero, preco_manual: Optional[Numero] = None) -> float:
    """Usa o preço manual quando for um número positivo; senão o sugerido.

    O resultado nunca é negativo.
    """
    if isinstance(preco_manual, (int, float)) and not isinstance(preco_manual, bool) and preco_manual > 0:
        return float(preco_manual)
    return max(float(sugerido), 0.0)


def calcular_precificacao(
    largura: Numero,
    altura: Numero,
    custo_tinta_ml: Numero,
    fator_consumo_tinta: Numero,
    complexidade: Union[Complexidade, str, None] = Complexidade.BAIXA,
    custo_adicional: Numero = 0.0,
    preco_manual: Optional[Numero] = None,
    unidade: str = "m",
) -> Precificacao:
    """Calcula todos os campos derivados de um orçamento."""
    area = area_m2(largura, altura, unidade)
    consumo = consumo_tinta(area, fator_consumo_tinta)
    tinta = custo_tinta(consumo, custo_tinta_ml)
    sugerido = preco_sugerido(tinta, custo_adicional, complexidade)
    return Precificacao(
        area=area,
        consumo_tinta_ml=consumo,
        custo_tinta=tinta,
        custo_total_estimado=custo_total_estimado(tinta, custo_adicional),
        preco_sugerido=sugerido,
        preco_final=preco_final(sugerido, preco_manual),
    )
