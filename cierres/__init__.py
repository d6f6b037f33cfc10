# cierres/__init__.py

from flask import Flask
from .config import Config
from .extensions import db, migrate

def create_app(config_class=Config, clients=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Inicializar extensiones
    db.init_app(app)
    migrate.init_app(app, db)

    # Colaboradores externos (soportes, Claude, correo); los tests pasan fakes
    if clients is None:
        from .services.clients import build_clients
        clients = build_clients(app.config)
    app.extensions["cierres"] = clients

    # Registrar blueprints
    from .blueprints.api.routes import api_bp
    from .blueprints.health.routes import health_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/health")

    return app
