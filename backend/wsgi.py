# backend/wsgi.py
from eggpack import create_app

app = create_app()
