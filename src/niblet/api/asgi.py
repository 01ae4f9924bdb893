"""ASGI entrypoint for the Niblet API."""

from niblet.api.app import create_app
from niblet.containers import build_container

app = create_app(build_container())
