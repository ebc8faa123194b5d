# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db spamidia.db
  python app.py config show
  python app.py orcamento novo --cliente "Padaria Sol" --telefone "11 99999-0000" --largura 2 --altura 1.5
  python app.py orcamento status <id> aprovado
  python app.py boleto emitir <id> 15/11/2025
  python app.py painel
"""

from orcamentos.adapters.cli import main

if __name__ == "__main__":
    main()
