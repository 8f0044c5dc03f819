# backend/wsgi.py
# Run: FLASK_APP=wsgi.py flask run   (or any WSGI server pointed at wsgi:app)
from wholesale import create_app

app = create_app()
