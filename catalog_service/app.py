import os
import logging

from flask import Flask, jsonify, redirect, render_template
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, InternalServerError

from .authors import AuthorController
from .books import BookController
from .config import Config
from .controller import HomeController
from .copies import CopyController
from .genres import GenreController
from .repositories import Repositories
from .routes import catalog_bp
from .store import RecordStore

# ---------------------------------------------------------
# Logging
# ---------------------------------------------------------
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Catalog:
    """Store, repositories and one lifecycle controller per entity kind."""

    def __init__(self, store, timeout=None):
        self.store = store
        repos = Repositories(store)
        self.home = HomeController(repos, timeout)
        self.books = BookController(repos, timeout)
        self.authors = AuthorController(repos, timeout)
        self.genres = GenreController(repos, timeout)
        self.copies = CopyController(repos, timeout)


def create_app(overrides=None):
    """
    Build the Flask app. ``overrides`` is applied on top of ``Config``,
    e.g. ``{"SQLALCHEMY_DATABASE_URI": "sqlite:///test.db"}``.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    CORS(app)

    # ---------------------------------------------------------
    # Record store
    # ---------------------------------------------------------
    store = RecordStore(
        app.config["SQLALCHEMY_DATABASE_URI"], echo=app.config["SQLALCHEMY_ECHO"]
    )
    store.connect()
    app.extensions["catalog"] = Catalog(store, timeout=app.config["AGGREGATION_TIMEOUT"])

    app.register_blueprint(catalog_bp)

    @app.get("/")
    def root():
        return redirect("/catalog/")

    @app.get("/api/health")
    def health_check():
        return jsonify({"status": "ok", "service": "catalog_service"}), 200

    # ---------------------------------------------------------
    # Errors
    # ---------------------------------------------------------

    def render_error(error):
        detail = None
        if app.config["APP_ENV"] != "production":
            detail = repr(getattr(error, "original_exception", None) or error)
        return (
            render_template(
                "error.html",
                title="Error",
                status=error.code,
                message=error.description,
                error=detail,
            ),
            error.code,
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.code >= 500:
            logger.error("Request failed: %s", error.description)
        return render_error(error)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error: %s", error)
        return render_error(InternalServerError(original_exception=error))

    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    create_app().run(host="0.0.0.0", port=port, debug=True)
