'''Flask app assembly: config, store, blueprints, error handlers.
Does not start the server; used by run.py, WSGI servers and tests.'''
# paytrack/app_factory.py
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from pydantic import ValidationError as RequestValidationError
from werkzeug.exceptions import HTTPException

from paytrack.clock import SystemClock
from paytrack.db.enums import ScheduleInsertMode
from paytrack.db.init_db import init_db
from paytrack.db.session import DEFAULT_TIMEOUT_SECONDS, build_engine, build_session_factory
from paytrack.exceptions import NotFoundError, PayTrackError, PersistenceError, ValidationError
from paytrack.logger import get_logger
from paytrack.schemas.error_type import ErrorType
from paytrack.store.record_store import RecordStore

# 加载环境变量
load_dotenv()

logger = get_logger(__name__)

# 项目根目录（绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def load_config() -> dict:
    return {
        "DATABASE_URL": os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(BASE_DIR, 'paytrack.db')}"),
        "DB_TIMEOUT_SECONDS": float(os.getenv("DB_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        "SECRET_KEY": os.getenv("SECRET_KEY", "dev-secret-key-change-in-production"),
        "UPLOAD_FOLDER": os.getenv("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads")),
        "MAX_CONTENT_LENGTH": int(os.getenv("MAX_UPLOAD_SIZE", 10485760)),  # 10MB
        "SCHEDULE_INSERT_MODE": os.getenv("SCHEDULE_INSERT_MODE", ScheduleInsertMode.best_effort.value),
    }


def create_app(config_overrides=None):
    """Application factory."""
    app = Flask(__name__)
    app.config.update(load_config())
    if config_overrides:
        app.config.update(config_overrides)

    # 校验插入模式，配置错误时启动即失败
    ScheduleInsertMode(app.config["SCHEDULE_INSERT_MODE"])
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # 存储：显式构造后挂在 app 上，不使用全局 engine
    engine = build_engine(app.config["DATABASE_URL"], app.config["DB_TIMEOUT_SECONDS"])
    init_db(engine)
    app.extensions["paytrack"] = {
        "engine": engine,
        "store": RecordStore(build_session_factory(engine)),
        "clock": app.config.get("CLOCK") or SystemClock(),
    }

    # 注册蓝图
    from paytrack.routes.attachments import attachment_bp
    from paytrack.routes.clients import client_bp
    from paytrack.routes.payments import payment_bp
    from paytrack.routes.projects import project_bp
    from paytrack.routes.reports import report_bp
    from paytrack.routes.tasks import task_bp
    from paytrack.routes.team import team_bp

    app.register_blueprint(project_bp)
    app.register_blueprint(payment_bp)
    app.register_blueprint(task_bp)
    app.register_blueprint(client_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(attachment_bp)
    app.register_blueprint(report_bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "service": "PayTrack API"})

    # 注册错误处理
    register_error_handlers(app)

    logger.info(f"PayTrack API ready, schedule insert mode: {app.config['SCHEDULE_INSERT_MODE']}")
    return app


def error_response(message: str, error_type, status: int):
    return jsonify({"error": message, "errorType": getattr(error_type, "value", error_type)}), status


def register_error_handlers(app):
    """JSON error handlers."""

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return error_response(error.message, ErrorType.VALIDATION_ERROR, 400)

    @app.errorhandler(RequestValidationError)
    def request_error(error):
        details = "; ".join(
            f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in error.errors()
        )
        return error_response(f"Invalid request: {details}", ErrorType.INPUT_ERROR, 400)

    @app.errorhandler(NotFoundError)
    def not_found_error(error):
        return error_response(error.message, ErrorType.NOT_FOUND, 404)

    @app.errorhandler(PersistenceError)
    def persistence_error(error):
        return error_response(error.message, ErrorType.DATABASE_ERROR, 503)

    @app.errorhandler(PayTrackError)
    def paytrack_error(error):
        return error_response(error.message, error.code, 500)

    @app.errorhandler(HTTPException)
    def http_error(error):
        error_type = ErrorType.NOT_FOUND if error.code == 404 else ErrorType.INPUT_ERROR
        if error.code >= 500:
            error_type = ErrorType.SYSTEM_ERROR
        return error_response(error.description, error_type, error.code)

    @app.errorhandler(Exception)
    def internal_error(error):
        logger.exception(f"Unhandled error: {error}")
        return error_response("Internal server error", ErrorType.SYSTEM_ERROR, 500)
