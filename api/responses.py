from flask import jsonify, make_response


def api_response(status: int = 200, message: str = "success", data=None, errors=None):
    """Uniform envelope: {statusCode, message, data, success}."""
    payload = {
        "statusCode": status,
        "message": message,
        "data": data,
        "success": status < 400,
    }
    if errors:
        payload["errors"] = errors
    return make_response(jsonify(payload), status)
