"""
Testes do assistente de IA com o transporte HTTP simulado (httpx.MockTransport).
"""

import asyncio
import json

import httpx
import pytest

from orcamentos.adapters.gemini import (
    MSG_ERRO,
    MSG_SEM_CHAVE,
    MSG_SEM_RESPOSTA,
    AtualizadorAlertas,
    ClienteGemini,
    analisar,
    contexto_orcamentos,
    extrair_alertas,
    gerar_alertas,
)
from orcamentos.domain.models import Complexidade, Configuracoes, NovoOrcamento
from orcamentos.infra.armazenamento import ArmazenamentoMemoria
from orcamentos.infra.repositories import ConfiguracoesRepo, OrcamentoRepo


def _resposta(texto):
    return {"candidates": [{"content": {"parts": [{"text": texto}]}}]}


def _cliente(handler, chave="chave-teste"):
    return ClienteGemini(chave, transport=httpx.MockTransport(handler))


def _repo_com_orcamento():
    repo = OrcamentoRepo(ArmazenamentoMemoria())
    repo.adicionar(
        NovoOrcamento("Padaria Sol", "1", "Lona", 2, 1.5, complexidade=Complexidade.MEDIA),
        Configuracoes(),
    )
    return repo


def test_extrair_alertas_limpa_marcadores_e_linhas_curtas():
    texto = "1. Cobrar boletos vencidos\n\n- ok\n* Priorizar aprovações pendentes\n2) Revisar fluxo de caixa\n   \n• Curto"
    assert extrair_alertas(texto) == [
        "Cobrar boletos vencidos",
        "Priorizar aprovações pendentes",
        "Revisar fluxo de caixa",
        "Curto",
    ]


def test_extrair_alertas_preserva_numeros_do_texto():
    assert extrair_alertas("3 boletos vencem hoje\n30% dos orçamentos pendentes") == [
        "3 boletos vencem hoje",
        "30% dos orçamentos pendentes",
    ]


def test_extrair_alertas_descarta_menos_de_seis_caracteres():
    assert extrair_alertas("abcde\nabcdef") == ["abcdef"]
    assert extrair_alertas("") == []


def test_sem_chave_nao_chama_servico():
    chamadas = []

    def handler(request):
        chamadas.append(request)
        return httpx.Response(200, json=_resposta("x"))

    cfg = Configuracoes(chave_api="")
    cliente = _cliente(handler)
    assert asyncio.run(gerar_alertas(cfg, [], cliente=cliente)) == []
    assert asyncio.run(analisar(cfg, [], "Quanto faturei?", cliente=cliente)) == MSG_SEM_CHAVE
    assert chamadas == []


def test_gerar_alertas_envia_prompt_e_chave():
    recebidas = []

    def handler(request):
        recebidas.append(request)
        return httpx.Response(200, json=_resposta("1. Cobrar clientes com boleto em aberto\n2. Aprovar orçamentos parados"))

    repo = _repo_com_orcamento()
    cfg = Configuracoes(chave_api="chave-teste")
    alertas = asyncio.run(gerar_alertas(cfg, repo.listar(), cliente=_cliente(handler)))

    assert alertas == ["Cobrar clientes com boleto em aberto", "Aprovar orçamentos parados"]
    req = recebidas[0]
    assert req.headers["x-goog-api-key"] == "chave-teste"
    assert req.url.path.endswith("/models/gemini-2.5-flash:generateContent")
    body = json.loads(req.content)
    assert body["generationConfig"]["maxOutputTokens"] == 200
    prompt = body["contents"][0]["parts"][0]["text"]
    assert "Orçamentos pendentes de aprovação: 1" in prompt
    assert "Padaria Sol" in prompt


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(401, json={"error": {"message": "API key not valid"}}),
        lambda request: httpx.Response(200, text="não é json"),
        lambda request: httpx.Response(200, json={"candidates": [{"content": None}]}),
        lambda request: httpx.Response(200, json=[]),
        lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": ["x"]}}]}),
        lambda request: httpx.Response(200, json={"candidates": "nada"}),
    ],
)
def test_falha_do_servico_vira_resposta_padrao(handler):
    cfg = Configuracoes(chave_api="chave-teste")
    assert asyncio.run(gerar_alertas(cfg, [], cliente=_cliente(handler))) == []
    assert asyncio.run(analisar(cfg, [], "?", cliente=_cliente(handler))) == MSG_ERRO


def test_erro_de_transporte_vira_resposta_padrao():
    def handler(request):
        raise httpx.ConnectError("sem rede", request=request)

    cfg = Configuracoes(chave_api="chave-teste")
    assert asyncio.run(gerar_alertas(cfg, [], cliente=_cliente(handler))) == []
    assert asyncio.run(analisar(cfg, [], "?", cliente=_cliente(handler))) == MSG_ERRO


def test_analisar_responde_e_trata_resposta_vazia():
    def handler(request):
        body = json.loads(request.content)
        assert "Pergunta do Usuário: \"Quem deve mais?\"" in body["contents"][0]["parts"][0]["text"]
        assert "generationConfig" not in body
        return httpx.Response(200, json=_resposta("A Padaria Sol."))

    cfg = Configuracoes(chave_api="chave-teste")
    repo = _repo_com_orcamento()
    assert asyncio.run(analisar(cfg, repo.listar(), "Quem deve mais?", cliente=_cliente(handler))) == "A Padaria Sol."

    vazio = _cliente(lambda request: httpx.Response(200, json={"candidates": []}))
    assert asyncio.run(analisar(cfg, [], "?", cliente=vazio)) == MSG_SEM_RESPOSTA


def test_contexto_orcamentos_reduzido():
    repo = _repo_com_orcamento()
    ctx = contexto_orcamentos(repo.listar())
    assert ctx[0]["client"] == "Padaria Sol"
    assert ctx[0]["value"] == pytest.approx(48.75)
    assert ctx[0]["paid"] == "Não"
    assert ctx[0]["status"] == "Aguardando Aprovação"
    assert "T" not in ctx[0]["date"]


def test_atualizador_aplica_apenas_a_geracao_mais_recente():
    async def cenario():
        liberar_primeira = asyncio.Event()

        async def handler(request):
            prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
            if "Orçamentos pendentes de aprovação: 0" in prompt:
                # primeira chamada fica presa até a segunda terminar
                await liberar_primeira.wait()
                return httpx.Response(200, json=_resposta("Alerta antigo que deve sumir"))
            return httpx.Response(200, json=_resposta("Alerta novo com um pendente"))

        atualizador = AtualizadorAlertas(fabrica_cliente=lambda chave: _cliente(handler, chave))
        repo = OrcamentoRepo(ArmazenamentoMemoria())
        config_repo = ConfiguracoesRepo(ArmazenamentoMemoria())
        atualizador.conectar(repo, config_repo)

        config_repo.atualizar(chave_api="chave-teste")  # geração 1, sem orçamentos
        repo.adicionar(
            NovoOrcamento("Padaria Sol", "1", "Lona", 2, 1.5), config_repo.obter()
        )  # geração 2
        assert atualizador.geracao == 2

        for _ in range(10_000):
            if atualizador.alertas:
                break
            await asyncio.sleep(0)
        liberar_primeira.set()
        await atualizador.aguardar()
        return atualizador.alertas

    assert asyncio.run(cenario()) == ["Alerta novo com um pendente"]


def test_atualizador_sem_event_loop_ignora_disparo():
    atualizador = AtualizadorAlertas()
    assert atualizador.disparar([], Configuracoes(chave_api="x")) is None
    assert atualizador.geracao == 0
