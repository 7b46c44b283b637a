# backend/wsgi.py
from bookledger import create_app

app = create_app()
