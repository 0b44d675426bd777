import os
from importlib import import_module

from flask import Flask, Response
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from .guard import TextGuard

# Extensões globais
db = SQLAlchemy()
migrate = Migrate()
guard = TextGuard()


def create_app(
    _config_name: str | None = None, overrides: dict | None = None
) -> Flask:
    """Application Factory.

    Inicializa Flask, SQLAlchemy, Migrate e o TextGuard (BoundaryFilter +
    ValueNormalizer) e registra blueprints. ``"testing"`` seleciona
    ``TestingConfig``; o banco de testes pode ser trocado via
    ``TEXTGUARD_TEST_DATABASE_URL``. ``overrides`` é aplicado por último,
    antes de inicializar as extensões (a política é lida uma única vez).
    """
    app = Flask(__name__, instance_relative_config=True)

    # Carregar Config
    from .config import Config, TestingConfig

    if _config_name == "testing":
        app.config.from_object(TestingConfig)
        test_db = os.environ.get("TEXTGUARD_TEST_DATABASE_URL")
        if test_db:
            app.config["SQLALCHEMY_DATABASE_URI"] = test_db
    else:
        app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    # Ensure a secret key for sessions in dev/test
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = os.environ.get(
            "SECRET_KEY", "dev-secret-key"
        )

    # Inicializar extensões
    db.init_app(app)
    migrate.init_app(app, db)

    # Modelos precisam estar importados antes do guard: a tabela de codecs
    # é derivada dos metadados uma única vez
    from . import models  # noqa: F401

    guard.init_app(app, db)

    from .cli import register_cli

    register_cli(app)

    # Registro de Blueprints
    bp_specs = [
        ("textguard.blueprints.books_bp", "books_bp"),
    ]
    for module_name, attr_name in bp_specs:
        try:
            mod = import_module(module_name)
            bp = getattr(mod, "bp", None) or getattr(mod, attr_name, None)
            if bp is not None:
                app.register_blueprint(bp)
        except Exception as e:
            # Logar erro de importação/registro para diagnóstico (não silencie)
            app.logger.error(
                "Falha ao registrar blueprint %s: %s", module_name, e
            )
            raise

    # Handler global de erros
    @app.errorhandler(Exception)
    def handle_global_exception(e):
        from werkzeug.exceptions import HTTPException

        # Preserve HTTP errors with their original status codes
        if isinstance(e, HTTPException):
            return e
        db.session.rollback()
        app.logger.exception("Erro não tratado: %s", type(e).__name__)
        return Response(
            "Internal Server Error", status=500, mimetype="text/plain"
        )

    return app
