import pytest

from orcamentos.domain.models import (
    Complexidade,
    Configuracoes,
    FormaPagamento,
    NovoOrcamento,
    StatusOrcamento,
)
from orcamentos.infra.armazenamento import ArmazenamentoMemoria
from orcamentos.infra.repositories import OrcamentoRepo
from orcamentos.usecases.metricas import total_a_receber
from orcamentos.usecases.relatorios import ficha_orcamento, fila_producao, filtrar_financeiro


def _seed_repo():
    repo = OrcamentoRepo(ArmazenamentoMemoria())
    cfg = Configuracoes()
    ids = {}
    for nome in ("pendente", "aprovado", "producao", "finalizado", "reprovado"):
        orc = repo.adicionar(
            NovoOrcamento(
                cliente_nome=nome,
                cliente_telefone="11 90000-0000",
                tipo_servico="Fachada",
                largura=3,
                altura=1,
                complexidade=Complexidade.ALTA,
            ),
            cfg,
        )
        ids[nome] = orc.id
    repo.atualizar_status(ids["aprovado"], StatusOrcamento.APROVADO)
    for nome in ("producao", "finalizado"):
        repo.atualizar_status(ids[nome], StatusOrcamento.APROVADO)
        repo.atualizar_status(ids[nome], StatusOrcamento.EM_PRODUCAO)
    repo.atualizar_status(ids["finalizado"], StatusOrcamento.FINALIZADO)
    repo.atualizar_status(ids["reprovado"], StatusOrcamento.REPROVADO)
    repo.emitir_boleto(ids["aprovado"], "2025-05-01")
    repo.emitir_boleto(ids["finalizado"], "2025-04-01")
    repo.marcar_boleto_pago(ids["finalizado"])
    return repo, ids


def test_fila_producao():
    repo, _ = _seed_repo()
    nomes = {o.cliente_nome for o in fila_producao(repo.listar())}
    assert nomes == {"aprovado", "producao"}


def test_filtros_financeiro():
    repo, _ = _seed_repo()
    orcs = repo.listar()
    assert [o.cliente_nome for o in filtrar_financeiro(orcs, "pendentes")] == ["pendente"]
    assert [o.cliente_nome for o in filtrar_financeiro(orcs, "boletos")] == ["aprovado"]
    assert len(filtrar_financeiro(orcs, "todos")) == 5
    with pytest.raises(ValueError):
        filtrar_financeiro(orcs, "atrasados")


def test_boleto_pago_sai_do_a_receber():
    repo = OrcamentoRepo(ArmazenamentoMemoria())
    orc = repo.adicionar(
        NovoOrcamento("Loja X", "1", "Adesivo", 2, 1.5, complexidade=Complexidade.MEDIA),
        Configuracoes(),
    )
    assert total_a_receber(repo.listar()) == pytest.approx(48.75)
    repo.atualizar_status(orc.id, StatusOrcamento.APROVADO)
    repo.emitir_boleto(orc.id, "2025-04-01")
    repo.marcar_boleto_pago(orc.id)
    assert total_a_receber(repo.listar()) == 0


def test_ficha_orcamento():
    repo = OrcamentoRepo(ArmazenamentoMemoria())
    orc = repo.adicionar(
        NovoOrcamento(
            cliente_nome="Mercado Bom Preço",
            cliente_telefone="11 95555-1234",
            tipo_servico="Lona",
            largura=2,
            altura=1.5,
            material="Lona 440g",
            complexidade=Complexidade.MEDIA,
            forma_pagamento=FormaPagamento.PARCELADO,
            parcelas=3,
            data_producao="2025-03-20",
        ),
        Configuracoes(),
    )
    ficha = ficha_orcamento(orc)
    assert "SPAMÍDIA COMUNICAÇÃO VISUAL" in ficha
    assert f"#{orc.id[:8]}" in ficha
    assert "Mercado Bom Preço" in ficha
    assert "2,00m x 1,50m" in ficha
    assert "Parcelado (3x)" in ficha
    assert "20/03/2025" in ficha
    assert "R$ 48,75" in ficha
