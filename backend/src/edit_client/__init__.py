"""Client-side editing sessions against the notes API."""
from edit_client.api_client import create_client
from edit_client.session import EditSession, EditSessionError

__all__ = ["EditSession", "EditSessionError", "create_client"]
