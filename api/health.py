from flask import Blueprint

from .responses import api_response

bp = Blueprint("health", __name__)

API_VERSION = "1.0.0"


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            statusCode: { type: integer, example: 200 }
            message: { type: string, example: ok }
            data:
              type: object
              properties:
                version: { type: string, example: 1.0.0 }
            success: { type: boolean, example: true }
    """
    return api_response(200, "ok", {"version": API_VERSION})
