"""Application factory for a demo app protected by the guard."""

from typing import Any, Optional

from flask import Flask, Response, jsonify, request

from .store import PodStore
from . import Guard


def create_web_app(store: Optional[PodStore] = None, **config: Any) -> Flask:
    """Initialize and configure a guarded app with a single protected page."""
    app = Flask('sp_guard')
    app.config.from_object('sp_guard.config')
    app.config.update(config)

    Guard(app, store=store)

    @app.route('/', methods=['GET', 'POST'])
    def index() -> Response:
        return jsonify(attributes=request.attributes)

    return app
