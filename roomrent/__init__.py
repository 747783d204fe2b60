import logging
from datetime import date, datetime

import click
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(config_object='roomrent.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    logging.getLogger('roomrent').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    register_error_handlers(app)
    register_commands(app)

    with app.app_context():
        from roomrent import models  # noqa: F401
        from roomrent import routes
        app.register_blueprint(routes.api)

        db.create_all()

    return app


def register_error_handlers(app):
    from roomrent.errors import RentalError, PersistenceError

    @app.errorhandler(RentalError)
    def handle_rental_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        app.logger.exception('Unhandled error: %s', error)
        fallback = PersistenceError()
        return jsonify(fallback.to_dict()), fallback.status_code

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'success': False, 'message': 'Please log in to continue.'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'success': False, 'message': 'Please log in to continue.'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'success': False, 'message': 'Your session has expired. Please log in again.'}), 401


def register_commands(app):

    @app.cli.command('sweep-expired')
    @click.option('--date', 'on_date', default=None, help='Reference day as YYYY-MM-DD (defaults to today).')
    def sweep_expired_command(on_date):
        """Complete expired contracts and refresh room availability."""
        from roomrent.booking import sweep_expired
        from roomrent.inventory import refresh_availability

        today = datetime.strptime(on_date, '%Y-%m-%d').date() if on_date else date.today()
        completed = sweep_expired(today)
        refresh_availability(today)
        click.echo(f'Completed {len(completed)} contract(s): {completed}')
