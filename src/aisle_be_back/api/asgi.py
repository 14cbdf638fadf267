"""ASGI entrypoint for the household API."""

from aisle_be_back.api.app import create_app

app = create_app()
