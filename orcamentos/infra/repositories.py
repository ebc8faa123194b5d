# orcamentos/infra/repositories.py
"""
Repositórios em memória com persistência chave/valor.

Classes:
- OrcamentoRepo      -> coleção de orçamentos e transições do ciclo de vida
- ConfiguracoesRepo  -> parâmetros de cálculo e chave da API

Cada mutação altera o estado em memória e em seguida executa os ganchos
de confirmação (on-commit). O primeiro gancho é sempre a persistência
completa da coleção/registro no armazenamento chave/valor.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from orcamentos.config import (
    CHAVE_CONFIGURACOES,
    CHAVE_ORCAMENTOS,
    PARCELAS_MAX,
    PARCELAS_MIN,
)
from orcamentos.domain.erros import (
    BoletoNaoEmitido,
    DataInvalida,
    OrcamentoNaoEncontrado,
    TransicaoInvalida,
)
from orcamentos.domain.models import (
    Configuracoes,
    FormaPagamento,
    NovoOrcamento,
    Orcamento,
    StatusOrcamento,
    configuracoes_from_dict,
    configuracoes_to_dict,
    orcamento_from_dict,
    orcamento_to_dict,
)
from orcamentos.domain.policies import (
    carimbar_aprovacao,
    carimbar_finalizacao,
    transicao_permitida,
)
from orcamentos.adapters.parsers import parse_data
from orcamentos.domain.precificacao import calcular_precificacao
from .armazenamento import ArmazenamentoChaveValor
from .logger import (
    log_financeiro,
    log_orcamento,
    log_system_event,
    log_transaction,
)


GanchoOrcamentos = Callable[[List[Orcamento]], None]
GanchoConfiguracoes = Callable[[Configuracoes], None]


# -------------------------
# Helpers
# -------------------------

def _data_iso(val: Union[str, date, datetime]) -> str:
    """Normaliza para AAAA-MM-DD; texto em DD/MM/AAAA também é aceito."""
    if isinstance(val, datetime):
        return val.date().isoformat()
    if isinstance(val, date):
        return val.isoformat()
    try:
        iso = parse_data(val)
    except ValueError:
        raise DataInvalida(val) from None
    if iso is None:
        raise DataInvalida(val)
    return iso


def _normaliza_parcelas(forma: FormaPagamento, parcelas: Optional[int]) -> Optional[int]:
    if FormaPagamento(forma) != FormaPagamento.PARCELADO:
        return None
    if parcelas is None:
        return PARCELAS_MIN
    return max(PARCELAS_MIN, min(PARCELAS_MAX, int(parcelas)))


# -------------------------
# Orçamentos
# -------------------------

class OrcamentoRepo:
    def __init__(
        self,
        armazenamento: ArmazenamentoChaveValor,
        relogio: Optional[Callable[[], datetime]] = None,
        validar_transicoes: bool = True,
    ):
        self.armazenamento = armazenamento
        self.relogio = relogio or datetime.now
        self.validar_transicoes = validar_transicoes
        self._orcamentos: List[Orcamento] = self._carregar()
        self._ganchos: List[GanchoOrcamentos] = [self._persistir]

    # --- persistência ---

    def _carregar(self) -> List[Orcamento]:
        bruto = self.armazenamento.ler(CHAVE_ORCAMENTOS)
        if bruto is None:
            return []
        return [orcamento_from_dict(d) for d in json.loads(bruto)]

    def _persistir(self, snapshot: List[Orcamento]) -> None:
        payload = [orcamento_to_dict(o) for o in snapshot]
        self.armazenamento.gravar(CHAVE_ORCAMENTOS, json.dumps(payload, ensure_ascii=False))

    def registrar_gancho(self, gancho: GanchoOrcamentos) -> None:
        """Registra uma função chamada com o snapshot após cada mutação."""
        self._ganchos.append(gancho)

    def _confirmar(self) -> None:
        snapshot = self.listar()
        for gancho in self._ganchos:
            gancho(snapshot)

    # --- leitura ---

    def listar(self) -> List[Orcamento]:
        """Snapshot da coleção, do mais recente para o mais antigo."""
        return [replace(o) for o in self._orcamentos]

    def obter(self, orcamento_id: str) -> Orcamento:
        return replace(self._buscar(orcamento_id))

    def _buscar(self, orcamento_id: str) -> Orcamento:
        for o in self._orcamentos:
            if o.id == orcamento_id:
                return o
        raise OrcamentoNaoEncontrado(orcamento_id)

    def _agora(self) -> str:
        return self.relogio().isoformat(timespec="seconds")

    # --- comandos ---

    def adicionar(self, novo: NovoOrcamento, configuracoes: Configuracoes) -> Orcamento:
        """Cria um orçamento ``Aguardando Aprovação`` com os custos calculados."""
        calc = calcular_precificacao(
            largura=novo.largura,
            altura=novo.altura,
            custo_tinta_ml=configuracoes.custo_tinta_ml,
            fator_consumo_tinta=configuracoes.fator_consumo_tinta,
            complexidade=novo.complexidade,
            custo_adicional=novo.custo_adicional,
            preco_manual=novo.preco_manual,
            unidade=novo.unidade,
        )
        orc = Orcamento(
            id=str(uuid.uuid4()),
            cliente_nome=novo.cliente_nome,
            cliente_telefone=novo.cliente_telefone,
            tipo_servico=novo.tipo_servico,
            largura=float(novo.largura),
            altura=float(novo.altura),
            unidade=novo.unidade,
            material=novo.material,
            tecnica=novo.tecnica,
            complexidade=novo.complexidade,
            data_producao=_data_iso(novo.data_producao) if novo.data_producao else None,
            observacoes=novo.observacoes,
            forma_pagamento=novo.forma_pagamento,
            parcelas=_normaliza_parcelas(novo.forma_pagamento, novo.parcelas),
            consumo_tinta_ml=calc.consumo_tinta_ml,
            custo_tinta=calc.custo_tinta,
            custo_total_estimado=calc.custo_total_estimado,
            preco_final=calc.preco_final,
            status=StatusOrcamento.AGUARDANDO_APROVACAO,
            criado_em=self._agora(),
            boleto_emitido=False,
            boleto_pago=False,
        )
        self._orcamentos.insert(0, orc)
        log_orcamento("create", orc.id, orc.status.value, cliente=orc.cliente_nome, preco_final=orc.preco_final)
        log_transaction("adicionar", {"id": orc.id, "tipo_servico": orc.tipo_servico}, result=orc.preco_final)
        self._confirmar()
        return replace(orc)

    def atualizar_status(self, orcamento_id: str, novo_status: Union[StatusOrcamento, str]) -> Orcamento:
        """Aplica uma transição de status.

        Entrar em ``Aprovado`` carimba ``aprovado_em`` e entrar em
        ``Finalizado`` carimba ``finalizado_em``, ambos uma única vez.
        Com ``validar_transicoes`` ligado, arestas fora do fluxo levantam
        ``TransicaoInvalida``.
        """
        novo = StatusOrcamento(novo_status)
        try:
            orc = self._buscar(orcamento_id)
        except OrcamentoNaoEncontrado as e:
            log_transaction("atualizar_status", {"id": orcamento_id, "status": novo.value}, error=str(e))
            raise
        if self.validar_transicoes and not transicao_permitida(orc.status, novo):
            erro = TransicaoInvalida(orc.status.value, novo.value)
            log_transaction("atualizar_status", {"id": orcamento_id, "status": novo.value}, error=str(erro))
            raise erro

        anterior = orc.status
        orc.status = novo
        if carimbar_aprovacao(novo, orc.aprovado_em):
            orc.aprovado_em = self._agora()
        if carimbar_finalizacao(novo, orc.finalizado_em):
            orc.finalizado_em = self._agora()

        log_orcamento("status", orc.id, novo.value, anterior=anterior.value)
        self._confirmar()
        return replace(orc)

    def emitir_boleto(self, orcamento_id: str, vencimento: Union[str, date, datetime]) -> Orcamento:
        """Marca o boleto como emitido; chamar de novo sobrescreve o vencimento."""
        orc = self._buscar(orcamento_id)
        vencimento_iso = _data_iso(vencimento)
        orc.boleto_emitido = True
        orc.boleto_vencimento = vencimento_iso
        log_financeiro("boleto_emitido", orc.id, orc.preco_final, vencimento=orc.boleto_vencimento)
        self._confirmar()
        return replace(orc)

    def marcar_boleto_pago(self, orcamento_id: str) -> Orcamento:
        orc = self._buscar(orcamento_id)
        if not orc.boleto_emitido:
            raise BoletoNaoEmitido(orcamento_id)
        if orc.boleto_pago:
            return replace(orc)
        orc.boleto_pago = True
        log_financeiro("boleto_pago", orc.id, orc.preco_final)
        self._confirmar()
        return replace(orc)

    def excluir(self, orcamento_id: str) -> None:
        """Remove o orçamento definitivamente."""
        orc = self._buscar(orcamento_id)
        self._orcamentos.remove(orc)
        log_orcamento("delete", orc.id, orc.status.value)
        self._confirmar()


# -------------------------
# Configurações
# -------------------------

class ConfiguracoesRepo:
    def __init__(self, armazenamento: ArmazenamentoChaveValor):
        self.armazenamento = armazenamento
        self._configuracoes = self._carregar()
        self._ganchos: List[GanchoConfiguracoes] = [self._persistir]

    def _carregar(self) -> Configuracoes:
        bruto = self.armazenamento.ler(CHAVE_CONFIGURACOES)
        if bruto is None:
            return Configuracoes()
        return configuracoes_from_dict(json.loads(bruto))

    def _persistir(self, cfg: Configuracoes) -> None:
        self.armazenamento.gravar(
            CHAVE_CONFIGURACOES,
            json.dumps(configuracoes_to_dict(cfg), ensure_ascii=False),
        )

    def registrar_gancho(self, gancho: GanchoConfiguracoes) -> None:
        self._ganchos.append(gancho)

    def obter(self) -> Configuracoes:
        return replace(self._configuracoes)

    def atualizar(self, **parcial: Any) -> Configuracoes:
        """Mescla os campos informados (valores ``None`` são ignorados)."""
        conhecidos = {f.name for f in fields(Configuracoes)}
        alteracoes: Dict[str, Any] = {}
        for chave, valor in parcial.items():
            if valor is None:
                continue
            if chave not in conhecidos:
                log_system_event("config_unknown_field", {"campo": chave}, level="warning")
                continue
            alteracoes[chave] = valor
        self._configuracoes = replace(self._configuracoes, **alteracoes)
        # Nunca registrar a chave da API em log
        log_system_event("config_updated", {"campos": sorted(alteracoes)})
        snapshot = self.obter()
        for gancho in self._ganchos:
            gancho(snapshot)
        return snapshot
