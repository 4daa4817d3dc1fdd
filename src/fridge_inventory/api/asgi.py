"""ASGI entrypoint for the fridge inventory API."""

from fridge_inventory.api.app import create_app
from fridge_inventory.containers import build_container

app = create_app(build_container())
