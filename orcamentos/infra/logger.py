# orcamentos/infra/logger.py
"""
Sistema de logging para as operações de orçamentos.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: criação e mudança de status de orçamentos, eventos
financeiros (boletos), gravações no armazenamento e eventos gerais.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging (SPAMIDIA_LOG=1 habilita)
ENABLE_LOGGING = os.getenv("SPAMIDIA_LOG", "0").strip().lower() in {"1", "true", "sim", "yes"}
# Liga a gravação mesmo com ENABLE_LOGGING desligado (uso em depuração)
ENABLE_OUTPUT = False

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger com saída em arquivo.

    O arquivo só é aberto na primeira mensagem (``delay=True``), então
    importar o módulo não cria arquivos de log vazios.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do pacote)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.getenv("SPAMIDIA_LOGS_DIR", str(BASE_DIR / "logs")))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "orcamentos": LOGS_DIR / "orcamentos.log",
    "financeiro": LOGS_DIR / "financeiro.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('orcamentos.transactions', str(LOG_FILES["transactions"]))
orcamento_logger = setup_logger('orcamentos.orcamentos', str(LOG_FILES["orcamentos"]))
financeiro_logger = setup_logger('orcamentos.financeiro', str(LOG_FILES["financeiro"]))
database_logger = setup_logger('orcamentos.database', str(LOG_FILES["database"]))
system_logger = setup_logger('orcamentos.system', str(LOG_FILES["system"]))

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (adicionar, atualizar_status, emitir_boleto...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_orcamento(action: str, orcamento_id: str, status: Optional[str] = None, **kwargs) -> None:
    """Log de operações sobre orçamentos (criação, status, exclusão)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "id": orcamento_id, "status": status, **kwargs}
    orcamento_logger.info(f"ORCAMENTO_{action.upper()}: {log_data}")

def log_financeiro(action: str, orcamento_id: str, valor: Optional[float] = None, **kwargs) -> None:
    """Log de eventos de boleto (emissão e pagamento)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "id": orcamento_id, "valor": valor, **kwargs}
    financeiro_logger.info(f"FINANCEIRO_{action.upper()}: {log_data}")

def log_database_operation(chave: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """Log das gravações/leituras no armazenamento chave/valor."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"chave": chave, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para operações de arquivo (exportação de planilhas)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém as últimas linhas de um log.

    Args:
        log_type: transactions, orcamentos, financeiro, database ou system
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (``None`` com o logging desligado)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            return ''.join(all_lines[-lines:])
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"