"""Local Eats ordering service.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# PROTEAN_ENV selects the logging profile; ORDERING_* variables configure the service
from ordering.domain import ordering
from ordering.utils.logging import configure_logging

configure_logging()
ordering.init()

from ordering.api.app import create_app  # noqa: E402

app = create_app()
