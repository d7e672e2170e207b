"""Health check and diagnostic endpoints."""

from flask import Blueprint, jsonify
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

# Create blueprint
health_bp = Blueprint('health', __name__, url_prefix='/api')


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Basic liveness check."""
    try:
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now().isoformat()
        }), 200
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'error': str(e)
        }), 500


@health_bp.route('/health/database', methods=['GET'])
def database_health_check():
    """Database connectivity check."""
    try:
        from src.utils.database import get_engine
        from sqlalchemy import text

        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'timestamp': datetime.now().isoformat()
        }), 200
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e)
        }), 503


@health_bp.route('/health/holiday-cache', methods=['GET'])
def holiday_cache_health_check():
    """Report which holiday cache backend is active."""
    from src.utils.cache_manager import InMemoryHolidayCache, get_holiday_cache

    cache = get_holiday_cache()
    payload = {
        'status': 'healthy',
        'backend': type(cache).__name__,
        'ttl_seconds': cache.ttl_seconds,
    }
    if isinstance(cache, InMemoryHolidayCache):
        payload['entries'] = len(cache)
    else:
        payload['enabled'] = cache.enabled
    return jsonify(payload), 200
