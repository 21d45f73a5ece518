"""
Run the Flask app with Waitress WSGI server (production-grade, no reloader)
"""
import os
from waitress import serve
from main import app

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    print("\n" + "="*70)
    print(f"Starting Sales Power Suite with Waitress on port {port}")
    print("No reloader - code changes require manual restart")
    print("="*70 + "\n")

    serve(app, host='0.0.0.0', port=port, threads=4)
