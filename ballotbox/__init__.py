from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, ma
from .middleware.request_id import init_request_id
from .swagger_config import swagger_template

load_dotenv()

def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    Swagger(app, template=swagger_template(app))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Models must be registered before the first create_all/migrate
    from . import models  # noqa: F401
    from .services.voting import VotingService
    from .utils.identity_provider import JWTIdentityProvider

    app.extensions["ballotbox.voting"] = VotingService(JWTIdentityProvider())

    # Blueprint imports
    from .api.poll.routes import polls_bp
    from .api.voting.routes import voting_bp

    # Blueprints
    app.register_blueprint(polls_bp, url_prefix="/api/polls")
    app.register_blueprint(voting_bp, url_prefix="/api/polls")

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    return app
