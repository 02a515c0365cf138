"""HTTP API over the source resolver."""

from charon.api.app import create_app, run_server

__all__ = ["create_app", "run_server"]
