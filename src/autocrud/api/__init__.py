"""HTTP surface: FastAPI CRUD routers over autocrud repositories."""

from autocrud.api.app import create_app
from autocrud.api.errors import ProblemDetail, error_response, problem_response
from autocrud.api.routes import CrudRoute, crud_router, default_route

__all__ = [
    "CrudRoute",
    "ProblemDetail",
    "create_app",
    "crud_router",
    "default_route",
    "error_response",
    "problem_response",
]
