# orcamentos/config.py
"""
Configurações globais e valores padrão do sistema de orçamentos.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.getenv("SPAMIDIA_DB", os.path.join(os.getcwd(), "spamidia.db"))

# Chaves do armazenamento chave/valor
CHAVE_ORCAMENTOS = "spamidia_budgets"
CHAVE_CONFIGURACOES = "spamidia_settings"

# Serviço de IA (Google Gemini)
GEMINI_MODELO = os.getenv("SPAMIDIA_GEMINI_MODELO", "gemini-2.5-flash")
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
ALERTAS_MAX_TOKENS = 200

# Regras de negócio
PARCELAS_MIN = 2
PARCELAS_MAX = 12
LIMITE_VENCIMENTOS = 5


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros de cálculo."""
    custo_tinta_ml: float = 0.65  # R$ por mL
    fator_consumo_tinta: float = 10.0  # mL por m²
    chave_api: str = ""  # vazio = IA desativada


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
