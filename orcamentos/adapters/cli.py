# orcamentos/adapters/cli.py
"""
CLI do sistema de orçamentos da Spamídia (Typer).

Comandos principais:
- migrate                     -> cria/atualiza o banco
- config show/set             -> custo da tinta, fator de consumo e chave da API
- orcamento novo/listar/ver   -> cadastro e consulta de orçamentos
- orcamento status/excluir    -> ciclo de vida
- orcamento ficha             -> ficha em texto para impressão
- boleto emitir/pagar         -> financeiro
- painel                      -> métricas do dashboard
- producao / financeiro       -> filas de trabalho
- alertas / perguntar         -> assistente de IA (Gemini)
- exportar <arquivo>          -> planilha XLSX/CSV
- logs [tipo]                 -> últimas linhas dos logs
"""

from __future__ import annotations

import asyncio
import json
import unicodedata
from contextlib import contextmanager
from dataclasses import asdict
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from orcamentos.config import DB_PATH, DEFAULTS
from orcamentos.adapters.gemini import analisar, gerar_alertas
from orcamentos.adapters.parsers import formatar_data, formatar_moeda, formatar_numero, parse_data
from orcamentos.adapters.planilhas import exportar_orcamentos
from orcamentos.domain.erros import OrcamentosErro
from orcamentos.domain.models import (
    Complexidade,
    FormaPagamento,
    NovoOrcamento,
    Orcamento,
    StatusOrcamento,
    orcamento_to_dict,
)
from orcamentos.domain.policies import proximo_status, status_terminal
from orcamentos.infra.armazenamento import ArmazenamentoSqlite
from orcamentos.infra.logger import LOG_FILES, get_log_summary
from orcamentos.infra.migrations import apply_migrations, schema_version
from orcamentos.infra.repositories import ConfiguracoesRepo, OrcamentoRepo
from orcamentos.usecases.metricas import painel
from orcamentos.usecases.relatorios import (
    FILTROS_FINANCEIRO,
    ficha_orcamento,
    fila_producao,
    filtrar_financeiro,
)


app = typer.Typer(help="Spamídia: orçamentos, boletos e custo de tinta")
console = Console()

E = TypeVar("E", bound=Enum)


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _abrir(db_path: str) -> Tuple[OrcamentoRepo, ConfiguracoesRepo]:
    armazenamento = ArmazenamentoSqlite(db_path)
    return OrcamentoRepo(armazenamento), ConfiguracoesRepo(armazenamento)


def _slug(s: str) -> str:
    """Minúsculas, sem acentos, espaços e barras viram '_'."""
    s = unicodedata.normalize("NFKD", str(s).strip().lower())
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    for ch in " /-":
        s = s.replace(ch, "_")
    return s


def _enum_por_texto(enum_cls: Type[E], txt: str) -> E:
    """Aceita o nome do membro ou o texto exibido, sem acento e sem caixa."""
    alvo = _slug(txt)
    for membro in enum_cls:
        if alvo in (_slug(membro.name), _slug(membro.value)):
            return membro
    opcoes = ", ".join(_slug(m.name) for m in enum_cls)
    raise typer.BadParameter(f"{txt!r} inválido. Opções: {opcoes}")


def _resolver_id(repo: OrcamentoRepo, prefixo: str) -> str:
    """Permite usar o ID curto (8 primeiros caracteres) exibido nas tabelas."""
    candidatos = [o.id for o in repo.listar() if o.id.startswith(prefixo)]
    return candidatos[0] if len(candidatos) == 1 else prefixo


@contextmanager
def _tratar_erros() -> Iterator[None]:
    try:
        yield
    except OrcamentosErro as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)


def _status_colorido(status: StatusOrcamento) -> str:
    cores = {
        StatusOrcamento.AGUARDANDO_APROVACAO: "yellow",
        StatusOrcamento.APROVADO: "blue",
        StatusOrcamento.REPROVADO: "red",
        StatusOrcamento.EM_PRODUCAO: "magenta",
        StatusOrcamento.FINALIZADO: "green",
    }
    return f"[{cores[status]}]{status.value}[/]"


def _boleto_resumo(o: Orcamento) -> str:
    if not o.boleto_emitido:
        return "-"
    if o.boleto_pago:
        return "[green]Pago[/]"
    return f"Vence {formatar_data(o.boleto_vencimento)}"


def _tabela_orcamentos(orcamentos: List[Orcamento], title: str, com_proximo: bool = False) -> None:
    if not orcamentos:
        console.print(Panel("Nenhum orçamento encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID")
    table.add_column("Cliente")
    table.add_column("Serviço")
    table.add_column("Medidas", justify="right")
    table.add_column("Preço", justify="right")
    table.add_column("Status")
    table.add_column("Criado", justify="center")
    table.add_column("Boleto")
    if com_proximo:
        table.add_column("Próximo passo")
    for o in orcamentos:
        linha = [
            o.id[:8],
            o.cliente_nome,
            o.tipo_servico,
            f"{formatar_numero(o.largura)}x{formatar_numero(o.altura)}{o.unidade}",
            formatar_moeda(o.preco_final),
            _status_colorido(o.status),
            formatar_data(o.criado_em),
            _boleto_resumo(o),
        ]
        if com_proximo:
            proximo = proximo_status(o.status)
            linha.append(proximo.value if proximo else "-")
        table.add_row(*linha)
    console.print(table)


def _tabela_detalhe(o: Orcamento, title: str = "Orçamento") -> None:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Campo")
    table.add_column("Valor")
    moeda = {"custo_tinta", "custo_total_estimado", "preco_final"}
    for chave, valor in orcamento_to_dict(o).items():
        if valor is None or valor == "":
            continue
        if chave in moeda:
            texto = formatar_moeda(valor)
        elif chave == "consumo_tinta_ml":
            texto = f"{formatar_numero(valor, 1)} mL"
        elif isinstance(valor, bool):
            texto = "Sim" if valor else "Não"
        else:
            texto = str(valor)
        table.add_row(chave, texto)
    console.print(table)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Cria o banco (tabela chave/valor) e aplica migrações."""
    apply_migrations(db_path)
    typer.echo(f">> Banco pronto (schema v{schema_version(db_path)}): {db_path}")
    for chave, atualizado_em in ArmazenamentoSqlite(db_path, migrar=False).chaves().items():
        typer.echo(f"   {chave}: última gravação {atualizado_em or '-'}")


config_app = typer.Typer(help="Parâmetros de cálculo e chave da API.")
app.add_typer(config_app, name="config")


@config_app.command("set")
def cmd_config_set(
    custo_tinta_ml: Optional[float] = typer.Option(None, help="R$ por mL de tinta (ex.: 0.65)"),
    fator_consumo_tinta: Optional[float] = typer.Option(None, help="mL de tinta por m² (ex.: 10)"),
    chave_api: Optional[str] = typer.Option(None, help="Chave da API Google Gemini ('' desativa)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Atualiza as configurações (apenas os campos informados mudam)."""
    if custo_tinta_ml is None and fator_consumo_tinta is None and chave_api is None:
        typer.echo("Nada a alterar. Informe pelo menos um parâmetro.")
        raise typer.Exit(code=1)
    _, config_repo = _abrir(db_path)
    config_repo.atualizar(
        custo_tinta_ml=custo_tinta_ml,
        fator_consumo_tinta=fator_consumo_tinta,
        chave_api=chave_api,
    )
    typer.echo(">> Configurações atualizadas.")


@config_app.command("show")
def cmd_config_show(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exibe as configurações efetivas (com fallback para os padrões)."""
    _, config_repo = _abrir(db_path)
    cfg = asdict(config_repo.obter())
    # A chave nunca é exibida por inteiro
    if cfg["chave_api"]:
        cfg["chave_api"] = cfg["chave_api"][:4] + "****"
    if as_json:
        _print_json(cfg)
        return
    table = Table(title="Configurações", box=box.ROUNDED)
    table.add_column("Parâmetro")
    table.add_column("Valor Atual")
    table.add_column("Valor Padrão")
    padroes = asdict(DEFAULTS)
    for chave, valor in cfg.items():
        table.add_row(chave, str(valor) if valor != "" else "(vazio)", str(padroes[chave]) or "(vazio)")
    console.print(table)
    console.print(f"[dim]Banco de dados: {db_path}[/dim]")


# -----------------------
# orçamentos
# -----------------------

orc_app = typer.Typer(help="Cadastro e ciclo de vida dos orçamentos.")
app.add_typer(orc_app, name="orcamento")


@orc_app.command("novo")
def cmd_orcamento_novo(
    cliente: str = typer.Option(..., help="Nome do cliente"),
    telefone: str = typer.Option(..., help="Telefone do cliente"),
    servico: str = typer.Option("Adesivo", help="Adesivo, Lona, Placa PVC, Fachada, Recorte..."),
    largura: float = typer.Option(..., help="Largura"),
    altura: float = typer.Option(..., help="Altura"),
    unidade: str = typer.Option("m", help="m | cm"),
    material: str = typer.Option("", help="Ex.: Vinil 3M"),
    tecnica: str = typer.Option("", help="Ex.: Impressão digital"),
    complexidade: str = typer.Option("baixa", help="baixa | media | alta"),
    data_producao: Optional[str] = typer.Option(None, help="YYYY-MM-DD ou DD/MM/AAAA"),
    obs: str = typer.Option("", help="Observações"),
    pagamento: str = typer.Option("a_vista", help="a_vista | cartao | pix | boleto_30 | boleto_28 | boleto_30_60 | parcelado"),
    parcelas: Optional[int] = typer.Option(None, help="Parcelas (2 a 12) quando parcelado"),
    custo_adicional: float = typer.Option(0.0, help="Custo adicional (material, mão de obra)"),
    preco_manual: Optional[float] = typer.Option(None, help="Preço final manual (sobrepõe o sugerido)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria um orçamento aguardando aprovação."""
    if not cliente.strip() or not telefone.strip():
        raise typer.BadParameter("Cliente e telefone são obrigatórios.")
    try:
        producao = parse_data(data_producao)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    repo, config_repo = _abrir(db_path)
    novo = NovoOrcamento(
        cliente_nome=cliente.strip(),
        cliente_telefone=telefone.strip(),
        tipo_servico=servico,
        largura=largura,
        altura=altura,
        unidade=unidade,
        material=material,
        tecnica=tecnica,
        complexidade=_enum_por_texto(Complexidade, complexidade),
        data_producao=producao,
        observacoes=obs,
        forma_pagamento=_enum_por_texto(FormaPagamento, pagamento),
        parcelas=parcelas,
        custo_adicional=custo_adicional,
        preco_manual=preco_manual,
    )
    orc = repo.adicionar(novo, config_repo.obter())
    _tabela_detalhe(orc, title="Orçamento Criado")
    typer.echo(f">> Orçamento criado: {orc.id}")


@orc_app.command("listar")
def cmd_orcamento_listar(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os orçamentos (mais recentes primeiro)."""
    repo, _ = _abrir(db_path)
    orcamentos = repo.listar()
    if as_json:
        _print_json([orcamento_to_dict(o) for o in orcamentos])
        return
    _tabela_orcamentos(orcamentos, title="Orçamentos")


@orc_app.command("ver")
def cmd_orcamento_ver(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra todos os campos de um orçamento."""
    repo, _ = _abrir(db_path)
    with _tratar_erros():
        _tabela_detalhe(repo.obter(_resolver_id(repo, orcamento_id)))


@orc_app.command("status")
def cmd_orcamento_status(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    status: str = typer.Argument(..., help="aprovado | reprovado | em_producao | finalizado"),
    sem_validar: bool = typer.Option(False, "--sem-validar", help="Permite qualquer mudança de status"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Muda o status de um orçamento seguindo o fluxo de produção."""
    armazenamento = ArmazenamentoSqlite(db_path)
    repo = OrcamentoRepo(armazenamento, validar_transicoes=not sem_validar)
    novo = _enum_por_texto(StatusOrcamento, status)
    with _tratar_erros():
        oid = _resolver_id(repo, orcamento_id)
        atual = repo.obter(oid).status
        if not sem_validar and atual != novo and status_terminal(atual):
            console.print(f"[bold red]Erro:[/] Orçamento encerrado ({atual.value}); o status não muda mais.")
            raise typer.Exit(code=1)
        orc = repo.atualizar_status(oid, novo)
    typer.echo(f">> {orc.id[:8]}: {orc.status.value}")


@orc_app.command("excluir")
def cmd_orcamento_excluir(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    sim: bool = typer.Option(False, "--sim", "-y", help="Não pedir confirmação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui um orçamento definitivamente."""
    repo, _ = _abrir(db_path)
    oid = _resolver_id(repo, orcamento_id)
    if not sim and not typer.confirm(f"Excluir o orçamento {oid[:8]} definitivamente?"):
        raise typer.Exit(code=0)
    with _tratar_erros():
        repo.excluir(oid)
    typer.echo(">> Orçamento excluído.")


@orc_app.command("ficha")
def cmd_orcamento_ficha(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Imprime a ficha do orçamento em texto."""
    repo, _ = _abrir(db_path)
    with _tratar_erros():
        orc = repo.obter(_resolver_id(repo, orcamento_id))
    typer.echo(ficha_orcamento(orc))


# -----------------------
# boletos
# -----------------------

boleto_app = typer.Typer(help="Emissão e baixa de boletos.")
app.add_typer(boleto_app, name="boleto")


@boleto_app.command("emitir")
def cmd_boleto_emitir(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    vencimento: str = typer.Argument(..., help="YYYY-MM-DD ou DD/MM/AAAA"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra a emissão do boleto com a data de vencimento."""
    try:
        data = parse_data(vencimento)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    if data is None:
        raise typer.BadParameter("Informe a data de vencimento.")
    repo, _ = _abrir(db_path)
    with _tratar_erros():
        orc = repo.emitir_boleto(_resolver_id(repo, orcamento_id), data)
    typer.echo(f">> Boleto emitido para {orc.id[:8]}, vencimento {formatar_data(orc.boleto_vencimento)}")


@boleto_app.command("pagar")
def cmd_boleto_pagar(
    orcamento_id: str = typer.Argument(..., help="ID (ou ID curto)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Marca o boleto como pago."""
    repo, _ = _abrir(db_path)
    with _tratar_erros():
        orc = repo.marcar_boleto_pago(_resolver_id(repo, orcamento_id))
    typer.echo(f">> Boleto de {orc.id[:8]} pago ({formatar_moeda(orc.preco_final)})")


# -----------------------
# painel e filas
# -----------------------

def _painel_json(dados: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(dados)
    out["proximos_vencimentos"] = [
        {"id": o.id, "cliente": o.cliente_nome, "vencimento": o.boleto_vencimento, "valor": o.preco_final}
        for o in dados["proximos_vencimentos"]
    ]
    return out


@app.command("painel")
def cmd_painel(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Métricas do dashboard: faturamento, a receber, filas e vencimentos."""
    repo, _ = _abrir(db_path)
    dados = painel(repo.listar())
    if as_json:
        _print_json(_painel_json(dados))
        return

    resumo = [
        f"Faturamento (mês): [bold green]{formatar_moeda(dados['faturamento_mensal'])}[/]",
        f"A receber:         [bold blue]{formatar_moeda(dados['total_a_receber'])}[/]",
        f"Pendentes:         {dados['pendentes']}",
        f"Aprovados:         {dados['aprovados']}",
        f"Em produção:       {dados['em_producao']}",
    ]
    console.print(Panel("\n".join(resumo), title="Visão Geral"))

    if dados["servicos_por_tipo"]:
        total = sum(dados["servicos_por_tipo"].values())
        table = Table(title="Serviços Mais Vendidos", box=box.ROUNDED)
        table.add_column("Serviço")
        table.add_column("Qtd", justify="right")
        table.add_column("%", justify="right")
        for nome, qtd in sorted(dados["servicos_por_tipo"].items(), key=lambda kv: -kv[1]):
            table.add_row(nome, str(qtd), formatar_numero(100.0 * qtd / total, 1))
        console.print(table)

    venc = dados["proximos_vencimentos"]
    if venc:
        table = Table(title="Próximos Vencimentos", box=box.ROUNDED)
        table.add_column("ID")
        table.add_column("Cliente")
        table.add_column("Vencimento", justify="center")
        table.add_column("Valor", justify="right")
        for o in venc:
            table.add_row(o.id[:8], o.cliente_nome, formatar_data(o.boleto_vencimento), formatar_moeda(o.preco_final))
        console.print(table)
    else:
        console.print("[dim]Nenhum boleto em aberto.[/dim]")


@app.command("producao")
def cmd_producao(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Fila de produção: orçamentos aprovados e em produção."""
    repo, _ = _abrir(db_path)
    _tabela_orcamentos(fila_producao(repo.listar()), title="Fila de Produção", com_proximo=True)


@app.command("financeiro")
def cmd_financeiro(
    filtro: str = typer.Option("pendentes", help=" | ".join(FILTROS_FINANCEIRO)),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista para o financeiro: pendentes de aprovação, boletos em aberto ou todos."""
    filtro = filtro.strip().lower()
    if filtro not in FILTROS_FINANCEIRO:
        raise typer.BadParameter(f"Use: {', '.join(FILTROS_FINANCEIRO)}")
    repo, _ = _abrir(db_path)
    _tabela_orcamentos(filtrar_financeiro(repo.listar(), filtro), title=f"Financeiro ({filtro})")


# -----------------------
# IA e exportação
# -----------------------

@app.command("alertas")
def cmd_alertas(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Gera alertas financeiros com a IA (requer chave da API)."""
    repo, config_repo = _abrir(db_path)
    cfg = config_repo.obter()
    if not cfg.chave_api:
        console.print("[yellow]Configure a chave da API com 'config set --chave-api'.[/yellow]")
        return
    alertas = asyncio.run(gerar_alertas(cfg, repo.listar()))
    if not alertas:
        console.print("[dim]Nenhum alerta gerado.[/dim]")
        return
    console.print(Panel("\n".join(f"• {a}" for a in alertas), title="Alertas Inteligentes", border_style="magenta"))


@app.command("perguntar")
def cmd_perguntar(
    pergunta: str = typer.Argument(..., help="Pergunta livre sobre os orçamentos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Faz uma pergunta à IA sobre os dados de orçamentos."""
    repo, config_repo = _abrir(db_path)
    resposta = asyncio.run(analisar(config_repo.obter(), repo.listar(), pergunta))
    typer.echo(resposta)


@app.command("exportar")
def cmd_exportar(
    caminho: str = typer.Argument(..., help="Arquivo de saída (.xlsx ou .csv)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exporta todos os orçamentos para planilha."""
    repo, _ = _abrir(db_path)
    linhas = exportar_orcamentos(repo.listar(), caminho)
    typer.echo(f">> {linhas} orçamento(s) exportado(s) para {caminho}")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help=" | ".join(LOG_FILES)),
    linhas: int = typer.Option(20, help="Quantidade de linhas"),
):
    """Mostra as últimas linhas de um log (requer SPAMIDIA_LOG=1)."""
    resumo = get_log_summary(tipo, lines=linhas)
    if resumo is None:
        typer.echo("Logging desligado. Defina SPAMIDIA_LOG=1 para habilitar.")
        return
    typer.echo(resumo)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
