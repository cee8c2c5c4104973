# backend/wsgi.py
# flask --app wsgi run
from posadmin import create_app

app = create_app()
