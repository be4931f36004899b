"""
WSGI entry point for the lead dashboard — `gunicorn wsgi:app`.

Run directly for local development; HOST, PORT and FLASK_DEBUG are read from env.
"""
import os

from app import create_app

app = create_app()

if __name__ == '__main__':
    app.run(
        host=os.getenv('HOST', '127.0.0.1'),
        port=int(os.getenv('PORT', 8080)),
        debug=os.getenv('FLASK_DEBUG', '').lower() in ('1', 'true'),
    )
