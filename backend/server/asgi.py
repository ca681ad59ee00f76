"""
ASGI entry point.

Used by uvicorn / gunicorn:

    uvicorn server.asgi:app --app-dir backend

Environment is read from a local .env file when present; variables
already set in the process environment take precedence.
"""

from dotenv import load_dotenv

load_dotenv(override=False)

from server.app import create_app  # pylint: disable=wrong-import-position

app = create_app()
