"""Web API for check-in eligibility, holidays and missed check-ins."""

from flask import Flask, request, jsonify
from flask_cors import CORS
import logging
import os

from config.settings import settings

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['JSON_SORT_KEYS'] = False

# Configure CORS for development and production
if os.getenv('FLASK_ENV') == 'production':
    # Production: only allow the configured admin domain
    base_url = os.getenv('WEB_BASE_URL', '').strip()
    cors_origins = [base_url] if base_url else []
    logger.info(f"Production CORS: {cors_origins}")
else:
    # Development: allow localhost for the admin UI
    frontend_port = int(os.getenv('FRONTEND_PORT', 5173))
    cors_origins = [
        f"http://localhost:{frontend_port}",
        "http://localhost:3000",
    ]
    logger.info(f"Development CORS: {cors_origins}")

CORS(app, origins=cors_origins, supports_credentials=True,
     allow_headers=['Content-Type', 'Authorization'],
     methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])

# Register blueprints
from src.routes.health import health_bp
from src.routes.check_in import check_in_bp
from src.routes.holidays import holidays_bp
from src.routes.missed_check_ins import missed_check_ins_bp

app.register_blueprint(health_bp)
app.register_blueprint(check_in_bp)
app.register_blueprint(holidays_bp)
app.register_blueprint(missed_check_ins_bp)


@app.errorhandler(404)
def not_found(e):
    """Return JSON 404s for API routes."""
    return jsonify({'success': False, 'error': 'Not found', 'path': request.path}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({'success': False, 'error': 'Method not allowed'}), 405


if __name__ == '__main__':
    app.run(debug=settings.web.debug, host=settings.web.host, port=settings.web.port)
