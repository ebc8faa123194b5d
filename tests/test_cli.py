import json
import re
from pathlib import Path

from typer.testing import CliRunner

from orcamentos.adapters.cli import app

runner = CliRunner()

ID_RE = re.compile(r">> Orçamento criado: ([0-9a-f-]{36})")


def _novo(db_path, *extra):
    result = runner.invoke(
        app,
        [
            "orcamento", "novo", "--db", str(db_path),
            "--cliente", "Padaria Sol",
            "--telefone", "11 99999-0000",
            "--servico", "Lona",
            "--largura", "2",
            "--altura", "1.5",
            "--complexidade", "media",
            *extra,
        ],
    )
    assert result.exit_code == 0, result.output
    return ID_RE.search(result.stdout).group(1)


def _listar(db_path):
    result = runner.invoke(app, ["orcamento", "listar", "--json", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_cli_migrate_e_config_show(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    result = runner.invoke(app, ["migrate", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "schema v2" in result.stdout

    # sem nada gravado, exibe os padrões
    result = runner.invoke(app, ["config", "show", "--json", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data == {"custo_tinta_ml": 0.65, "fator_consumo_tinta": 10.0, "chave_api": ""}


def test_cli_config_set_mascara_chave(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    result = runner.invoke(
        app,
        ["config", "set", "--db", str(db_path), "--custo-tinta-ml", "0.8", "--chave-api", "AIzaSECRETO"],
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["config", "show", "--json", "--db", str(db_path)])
    data = json.loads(result.stdout)
    assert data["custo_tinta_ml"] == 0.8
    assert data["fator_consumo_tinta"] == 10.0
    assert data["chave_api"] == "AIza****"


def test_cli_config_set_sem_parametros(tmp_path: Path):
    result = runner.invoke(app, ["config", "set", "--db", str(tmp_path / "x.sqlite")])
    assert result.exit_code == 1


def test_cli_novo_orcamento_calcula_preco(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    [orc] = _listar(db_path)
    assert orc["id"] == oid
    assert orc["status"] == "Aguardando Aprovação"
    assert orc["consumo_tinta_ml"] == 30.0
    assert orc["preco_final"] == 48.75
    assert orc["complexidade"] == "Média"


def test_cli_fluxo_de_status_e_boleto(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path, "--pagamento", "boleto_30")

    result = runner.invoke(app, ["orcamento", "status", oid[:8], "aprovado", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["boleto", "emitir", oid[:8], "15/04/2025", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "15/04/2025" in result.stdout

    result = runner.invoke(app, ["painel", "--json", "--db", str(db_path)])
    painel = json.loads(result.stdout)
    assert painel["aprovados"] == 1
    assert painel["total_a_receber"] == 48.75
    assert painel["proximos_vencimentos"][0]["vencimento"] == "2025-04-15"

    result = runner.invoke(app, ["boleto", "pagar", oid, "--db", str(db_path)])
    assert result.exit_code == 0, result.output

    [orc] = _listar(db_path)
    assert orc["status"] == "Aprovado"
    assert orc["boleto_emitido"] is True
    assert orc["boleto_pago"] is True
    assert orc["aprovado_em"]

    result = runner.invoke(app, ["painel", "--json", "--db", str(db_path)])
    assert json.loads(result.stdout)["total_a_receber"] == 0


def test_cli_transicao_invalida_sai_com_erro(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    result = runner.invoke(app, ["orcamento", "status", oid, "finalizado", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "Transição de status inválida" in result.stdout

    result = runner.invoke(app, ["orcamento", "status", oid, "finalizado", "--sem-validar", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert _listar(db_path)[0]["status"] == "Finalizado"


def test_cli_id_inexistente(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    result = runner.invoke(app, ["boleto", "pagar", "nao-existe", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "não encontrado" in result.stdout


def test_cli_excluir_e_ficha(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path, "--material", "Lona 440g")

    result = runner.invoke(app, ["orcamento", "ficha", oid, "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "R$ 48,75" in result.stdout
    assert "Lona 440g" in result.stdout

    # confirmação negada mantém o orçamento
    result = runner.invoke(app, ["orcamento", "excluir", oid, "--db", str(db_path)], input="n\n")
    assert result.exit_code == 0
    assert len(_listar(db_path)) == 1

    result = runner.invoke(app, ["orcamento", "excluir", oid, "--sim", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert _listar(db_path) == []


def test_cli_filas_e_exportacao(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    runner.invoke(app, ["orcamento", "status", oid, "aprovado", "--db", str(db_path)])

    result = runner.invoke(app, ["producao", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "Nenhum orçamento encontrado" not in result.stdout

    result = runner.invoke(app, ["financeiro", "--filtro", "boletos", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "Nenhum orçamento encontrado" in result.stdout

    saida = tmp_path / "orcamentos.csv"
    result = runner.invoke(app, ["exportar", str(saida), "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert saida.exists()


def test_cli_ia_sem_chave(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    result = runner.invoke(app, ["perguntar", "Quanto faturei?", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "configure sua chave de API" in result.stdout

    result = runner.invoke(app, ["alertas", "--db", str(db_path)])
    assert result.exit_code == 0, result.output


def test_cli_logs_desligado(monkeypatch):
    from orcamentos.infra import logger as log_mod

    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", False)
    result = runner.invoke(app, ["logs", "orcamentos"])
    assert result.exit_code == 0, result.output
    assert "SPAMIDIA_LOG=1" in result.stdout


def test_cli_fila_de_producao_mostra_proximo_passo(tmp_path: Path, monkeypatch):
    from rich.console import Console

    from orcamentos.adapters import cli as cli_mod

    monkeypatch.setattr(cli_mod, "console", Console(width=200))
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    runner.invoke(app, ["orcamento", "status", oid, "aprovado", "--db", str(db_path)])

    result = runner.invoke(app, ["producao", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "Próximo passo" in result.stdout
    assert oid[:8] in result.stdout
    assert "Em Produção" in result.stdout


def test_cli_status_encerrado_nao_muda(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    runner.invoke(app, ["orcamento", "status", oid, "reprovado", "--db", str(db_path)])

    result = runner.invoke(app, ["orcamento", "status", oid, "aprovado", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "Orçamento encerrado" in result.stdout
    assert _listar(db_path)[0]["status"] == "Reprovado"

    # reentrar no mesmo status continua aceito
    result = runner.invoke(app, ["orcamento", "status", oid, "reprovado", "--db", str(db_path)])
    assert result.exit_code == 0, result.output


def test_cli_financeiro_aceita_filtro_em_maiusculas(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    _novo(db_path)
    result = runner.invoke(app, ["financeiro", "--filtro", "Todos", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "Nenhum orçamento encontrado" not in result.stdout

    result = runner.invoke(app, ["financeiro", "--filtro", "vencidos", "--db", str(db_path)])
    assert result.exit_code != 0


def test_cli_migrate_lista_chaves_gravadas(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    runner.invoke(app, ["config", "set", "--db", str(db_path), "--custo-tinta-ml", "0.8"])
    result = runner.invoke(app, ["migrate", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "spamidia_settings: última gravação" in result.stdout
    assert "spamidia_budgets" not in result.stdout


def test_cli_boleto_com_data_invalida(tmp_path: Path):
    db_path = tmp_path / "spamidia_test.sqlite"
    oid = _novo(db_path)
    result = runner.invoke(app, ["boleto", "emitir", oid, "31/02/2025", "--db", str(db_path)])
    assert result.exit_code != 0
    assert _listar(db_path)[0]["boleto_emitido"] is False
