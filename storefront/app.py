import logging
import os
import time
import traceback

from quart import Quart, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .auth.controller import bp as auth_bp
from .cart.controller import bp as cart_bp
from .catalog.controller import categories_bp, products_bp
from .common.config import settings
from .common.database import init_db
from .common.errors import ApiError
from .common.metrics import REQUEST_COUNT, REQUEST_LATENCY
from .common.redis_client import close_redis
from .inventory.controller import bp as inventory_bp
from .orders.controller import bp as orders_bp
from .realtime.controller import bp as realtime_bp

# Prometheus exposition
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST


log = logging.getLogger(__name__)

# Get instance ID from environment
INSTANCE_ID = os.getenv("INSTANCE_ID", "unknown")


def _error_body(status: int, message: str, exc: BaseException) -> dict:
    body = {"status": status, "message": message}
    # stack traces never leave a production deployment
    if not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def create_app() -> Quart:
    app = Quart(__name__)

    # Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(realtime_bp)

    @app.errorhandler(ApiError)
    async def handle_api_error(err: ApiError):
        body = err.to_dict()
        if err.status >= 500:
            log.error("Request failed | %s %s status=%s err=%s", request.method, request.path, err.status, err)
            body.update(_error_body(err.status, err.message, err))
        return jsonify(body), err.status

    @app.errorhandler(HTTPException)
    async def handle_http_error(err: HTTPException):
        message = "Route not found" if err.code == 404 else (err.description or err.name)
        return jsonify({"status": err.code, "message": message}), err.code

    @app.errorhandler(Exception)
    async def handle_unexpected(err: Exception):
        log.exception("Unhandled error | %s %s", request.method, request.path)
        return jsonify(_error_body(500, "Internal Server Error", err)), 500

    @app.before_request
    async def before_request():
        g.start_time = time.time()
        log.debug(f"[Instance {INSTANCE_ID}] {request.method} {request.path}")

    @app.after_request
    async def after_request(response):
        try:
            start = getattr(g, "start_time", None)
            if start is not None:
                duration = time.time() - start
                # url rule keeps label cardinality bounded
                endpoint = request.url_rule.rule if request.url_rule else "unmatched"
                REQUEST_LATENCY.labels(endpoint=endpoint).observe(duration)
                REQUEST_COUNT.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=str(response.status_code)
                ).inc()
                response.headers["X-Instance-ID"] = INSTANCE_ID
        except Exception as e:
            log.error(f"Error recording metrics: {e}")
        return response

    @app.get("/metrics")
    async def metrics():
        data = generate_latest()
        return app.response_class(data, mimetype=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return jsonify({"status": "ok"})

    @app.before_serving
    async def startup():
        logging.basicConfig(level=settings.LOG_LEVEL.upper())
        settings.check()
        log.info("Initializing database...")
        await init_db()
        log.info("Database ready.")

    @app.after_serving
    async def shutdown():
        await close_redis()
        log.info("Shutdown complete.")

    return app
