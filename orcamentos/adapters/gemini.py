"""Assistente de IA (Google Gemini) para alertas financeiros e perguntas livres.

Usa a API REST ``models/{modelo}:generateContent`` via httpx. O serviço é
puramente consultivo: nada aqui altera orçamentos ou configurações, e
qualquer falha do serviço vira uma resposta padrão (lista vazia de
alertas ou mensagem fixa), nunca uma exceção para quem chamou.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

import httpx

from orcamentos.config import ALERTAS_MAX_TOKENS, GEMINI_BASE_URL, GEMINI_MODELO
from orcamentos.domain.erros import ServicoExternoErro
from orcamentos.domain.models import Configuracoes, Orcamento, StatusOrcamento

logger = logging.getLogger(__name__)

MSG_SEM_CHAVE = (
    "Por favor, configure sua chave de API (Google Gemini) nas Configurações para usar a IA."
)
MSG_SEM_RESPOSTA = "Não foi possível gerar uma resposta."
MSG_ERRO = (
    "Erro ao conectar com a IA. Verifique sua chave de API ou tente novamente mais tarde."
)

_MARCADOR_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])+\s*")
TAMANHO_MINIMO_ALERTA = 6


class ClienteGemini:
    """Cliente assíncrono mínimo para o endpoint generateContent.

    Sem retentativas e sem timeout próprio além do padrão do httpx.
    """

    def __init__(
        self,
        chave_api: str,
        modelo: str = GEMINI_MODELO,
        base_url: str = GEMINI_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.modelo = modelo
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"x-goog-api-key": chave_api},
            transport=transport,
        )

    async def __aenter__(self) -> "ClienteGemini":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.fechar()

    async def fechar(self) -> None:
        await self._client.aclose()

    async def gerar(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Envia o prompt e devolve o texto da primeira resposta candidata.

        Raises:
            ServicoExternoErro: falha de rede, status HTTP de erro ou
                resposta em formato inesperado.
        """
        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if max_tokens is not None:
            body["generationConfig"] = {"maxOutputTokens": max_tokens}

        try:
            response = await self._client.post(f"/models/{self.modelo}:generateContent", json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ServicoExternoErro(f"Falha na chamada ao Gemini: {exc}") from exc
        except ValueError as exc:
            raise ServicoExternoErro("Resposta do Gemini não é JSON") from exc

        if not isinstance(data, dict):
            raise ServicoExternoErro("Resposta do Gemini em formato inesperado")
        candidatos = data.get("candidates") or []
        if not candidatos:
            return ""
        try:
            partes = candidatos[0]["content"]["parts"]
            return "".join(str(p.get("text", "")) for p in partes)
        except (KeyError, TypeError, AttributeError) as exc:
            raise ServicoExternoErro("Resposta do Gemini em formato inesperado") from exc


def contexto_orcamentos(orcamentos: Iterable[Orcamento]) -> List[Dict[str, Any]]:
    """Visão reduzida dos orçamentos enviada ao modelo."""
    return [
        {
            "client": o.cliente_nome,
            "service": o.tipo_servico,
            "value": o.preco_final,
            "status": o.status.value,
            "date": o.criado_em.split("T")[0],
            "inkUsed": o.consumo_tinta_ml,
            "paid": "Sim" if o.boleto_pago else "Não",
            "dueDate": o.boleto_vencimento,
        }
        for o in orcamentos
    ]


def prompt_alertas(orcamentos: List[Orcamento], hoje: Optional[date] = None) -> str:
    hoje = hoje or date.today()
    pendentes = sum(1 for o in orcamentos if o.status == StatusOrcamento.AGUARDANDO_APROVACAO)
    em_aberto = sum(1 for o in orcamentos if o.boleto_emitido and not o.boleto_pago)
    dados = json.dumps(contexto_orcamentos(orcamentos), ensure_ascii=False)
    return (
        "Analise estas métricas rápidas da Spamídia:\n"
        f"- Orçamentos pendentes de aprovação: {pendentes}\n"
        f"- Boletos em aberto: {em_aberto}\n"
        f"- Data atual: {hoje.strftime('%d/%m/%Y')}\n"
        f"Dados dos orçamentos (JSON simplificado): {dados}\n\n"
        "Gere 3 alertas curtos e estratégicos para o gestor financeiro em formato de lista simples.\n"
        "Foque em urgência e fluxo de caixa."
    )


def prompt_pergunta(orcamentos: List[Orcamento], pergunta: str) -> str:
    dados = json.dumps(contexto_orcamentos(orcamentos), ensure_ascii=False)
    return (
        "Você é um assistente de gestão empresarial para uma empresa de comunicação visual "
        "chamada Spamídia.\n"
        "Analise os seguintes dados de orçamentos e responda à pergunta do usuário.\n"
        "Seja conciso, profissional e útil.\n\n"
        f"Dados (JSON simplificado):\n{dados}\n\n"
        f'Pergunta do Usuário: "{pergunta}"'
    )


def extrair_alertas(texto: str) -> List[str]:
    """Quebra a resposta em linhas e limpa marcadores de lista.

    Linhas com menos de 6 caracteres (após ``strip``) são descartadas.
    """
    alertas = []
    for linha in (texto or "").split("\n"):
        linha = linha.strip()
        if len(linha) < TAMANHO_MINIMO_ALERTA:
            continue
        alertas.append(_MARCADOR_RE.sub("", linha).strip())
    return [a for a in alertas if a]


async def gerar_alertas(
    configuracoes: Configuracoes,
    orcamentos: Iterable[Orcamento],
    cliente: Optional[ClienteGemini] = None,
) -> List[str]:
    """Alertas curtos de fluxo de caixa; lista vazia sem chave ou em caso de erro."""
    if not configuracoes.chave_api:
        return []
    prompt = prompt_alertas(list(orcamentos))
    try:
        if cliente is not None:
            texto = await cliente.gerar(prompt, max_tokens=ALERTAS_MAX_TOKENS)
        else:
            async with ClienteGemini(configuracoes.chave_api) as novo:
                texto = await novo.gerar(prompt, max_tokens=ALERTAS_MAX_TOKENS)
    except ServicoExternoErro:
        logger.exception("Falha ao gerar alertas de IA")
        return []
    return extrair_alertas(texto)


async def analisar(
    configuracoes: Configuracoes,
    orcamentos: Iterable[Orcamento],
    pergunta: str,
    cliente: Optional[ClienteGemini] = None,
) -> str:
    """Responde a uma pergunta livre sobre os orçamentos."""
    if not configuracoes.chave_api:
        return MSG_SEM_CHAVE
    prompt = prompt_pergunta(list(orcamentos), pergunta)
    try:
        if cliente is not None:
            texto = await cliente.gerar(prompt)
        else:
            async with ClienteGemini(configuracoes.chave_api) as novo:
                texto = await novo.gerar(prompt)
    except ServicoExternoErro:
        logger.exception("Falha ao consultar a IA")
        return MSG_ERRO
    return texto or MSG_SEM_RESPOSTA


class AtualizadorAlertas:
    """Atualiza a lista de alertas em segundo plano a cada mudança de estado.

    Cada disparo recebe um número de geração. Disparos anteriores ainda em
    andamento não são cancelados, mas o resultado deles é descartado: só a
    geração mais recente grava em ``alertas``.
    """

    def __init__(self, fabrica_cliente: Optional[Callable[[str], ClienteGemini]] = None) -> None:
        self.alertas: List[str] = []
        self._fabrica_cliente = fabrica_cliente
        self._geracao = 0
        self._tarefas: Set["asyncio.Task[bool]"] = set()
        self._orcamentos: List[Orcamento] = []
        self._configuracoes = Configuracoes()

    @property
    def geracao(self) -> int:
        return self._geracao

    def disparar(
        self, orcamentos: Iterable[Orcamento], configuracoes: Configuracoes
    ) -> "Optional[asyncio.Task[bool]]":
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Sem event loop ativo; atualização de alertas ignorada")
            return None
        self._geracao += 1
        tarefa = loop.create_task(self._executar(self._geracao, list(orcamentos), configuracoes))
        self._tarefas.add(tarefa)
        tarefa.add_done_callback(self._tarefas.discard)
        return tarefa

    async def _executar(self, geracao: int, orcamentos: List[Orcamento], configuracoes: Configuracoes) -> bool:
        cliente = None
        if self._fabrica_cliente is not None and configuracoes.chave_api:
            cliente = self._fabrica_cliente(configuracoes.chave_api)
        try:
            alertas = await gerar_alertas(configuracoes, orcamentos, cliente=cliente)
        finally:
            if cliente is not None:
                await cliente.fechar()
        if geracao != self._geracao:
            logger.debug("Alertas da geração %d descartados (atual: %d)", geracao, self._geracao)
            return False
        self.alertas = alertas
        return True

    async def aguardar(self) -> None:
        """Espera todos os disparos em andamento terminarem."""
        while self._tarefas:
            await asyncio.gather(*list(self._tarefas))

    def conectar(self, repo: Any, config_repo: Any) -> None:
        """Registra o atualizador como gancho dos repositórios."""
        self._orcamentos = repo.listar()
        self._configuracoes = config_repo.obter()
        repo.registrar_gancho(self._ao_mudar_orcamentos)
        config_repo.registrar_gancho(self._ao_mudar_configuracoes)

    def _ao_mudar_orcamentos(self, snapshot: List[Orcamento]) -> None:
        self._orcamentos = snapshot
        self.disparar(snapshot, self._configuracoes)

    def _ao_mudar_configuracoes(self, configuracoes: Configuracoes) -> None:
        self._configuracoes = configuracoes
        self.disparar(self._orcamentos, configuracoes)
