from flask import request
from werkzeug.exceptions import HTTPException

from .liturgical import InvalidYearError
from .schedule.service import GenerationError, NotFoundError


def register_error_handlers(app):
    @app.errorhandler(InvalidYearError)
    def invalid_year(e):
        return {"error": str(e)}, 400

    @app.errorhandler(NotFoundError)
    def calendar_not_found(e):
        return {"error": str(e)}, 404

    @app.errorhandler(GenerationError)
    def generation_failed(e):
        if isinstance(e.__cause__, InvalidYearError):
            return {"error": str(e)}, 400
        app.logger.warning("Service calendar generation failed: %s", e)
        return {"error": str(e)}, 503

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code == 403:
            app.logger.warning("403 Forbidden: %s", request.path)
        return {"error": e.description}, e.code

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.exception("Internal server error: %s", e)
        return {"error": "Internal server error."}, 500
