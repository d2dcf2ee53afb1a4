import logging
import os

from flask import Flask, redirect, render_template, url_for
from sqlalchemy.exc import SQLAlchemyError

from data_models import close_store, init_store
from logging_config import setup_logging
from routes import catalog
from services import NotFound

logger = logging.getLogger(__name__)

basedir = os.path.abspath(os.path.dirname(__file__))
DEFAULT_DATABASE_URI = f"sqlite:///{os.path.join(basedir, 'data/library.sqlite')}"


def create_app(test_config=None):
    """Builds the catalog application, reading its settings from the environment."""
    app = Flask(__name__)

    app.config.from_mapping(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev-key-only'),
        SQLALCHEMY_DATABASE_URI=os.environ.get('DATABASE_URL', DEFAULT_DATABASE_URI),
        LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
        LOG_FILE=os.environ.get('LOG_FILE'),
    )
    if test_config:
        app.config.update(test_config)

    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_FILE'])

    if app.config['SQLALCHEMY_DATABASE_URI'] == DEFAULT_DATABASE_URI:
        os.makedirs(os.path.join(basedir, 'data'), exist_ok=True)

    init_store(app)
    app.register_blueprint(catalog)

    @app.route('/')
    def index():
        """Redirects the root URL to the catalog home page."""
        return redirect(url_for('catalog.index'))

    @app.errorhandler(NotFound)
    def handle_not_found(error):
        return render_template('error.html', title='Not Found', message=str(error)), 404

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error):
        logger.error("Request failed on a database error: %s", error)
        return render_template('error.html', title='Error', message='Database error'), 500

    logger.info("Catalog application ready")
    return app


if __name__ == "__main__":
    application = create_app()
    try:
        application.run(debug=True)
    finally:
        close_store(application)
