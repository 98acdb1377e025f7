"""
Entry point for running the Invoicely API.

Usage:
    python3 run.py                   # development (default)
    FLASK_ENV=production python3 run.py
    flask --app run taxes seed       # maintenance commands
"""

from dotenv import load_dotenv

load_dotenv()

from invoicely import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
