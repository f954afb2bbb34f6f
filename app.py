# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db chapas.db
  python app.py perfil add "Ana" --papel controlador
  python app.py chapa nova --codigo CH-001 --descricao "Chapa 3mm" --espessura 3 --largura 1000 --comprimento 2000 --quantidade 10 -u Ana
  python app.py saida CH-001 4 -u Ana
  python app.py exportar historico --formato pdf --periodo mes -u Ana
"""

from chapas.adapters.cli import main

if __name__ == "__main__":
    main()
