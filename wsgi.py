"""
WSGI entry point for production deployment
Exposes the Flask app from main.py as `application` for WSGI servers
"""
from main import app

application = app

if __name__ == "__main__":
    app.run()
