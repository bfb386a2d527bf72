"""
app/dependencies/backend.py — Store dependency
===============================================
The store client is built once by create_app() and kept on app.state, so
tests can hand in their own (SQLite, failing fakes). Admin routes reach the
bucket through their Dashboard instead.
"""

from fastapi import Request

from db.client import Store


def get_store(request: Request) -> Store:
    return request.app.state.store
