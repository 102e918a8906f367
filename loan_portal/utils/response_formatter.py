from flask import jsonify


def success_response(payload=None, message=None, status=200):
    resp = {"success": True}
    if payload is not None:
        resp.update(payload if isinstance(payload, dict) else {"data": payload})
    if message:
        resp["message"] = message
    return jsonify(resp), status


def error_response(code, message, details=None, status=400):
    return jsonify({
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }), status


def service_error_response(exc):
    """Render a ServiceError (or subclass) with its own HTTP status."""
    return error_response(exc.code, exc.message, exc.details, status=exc.status)


def paginated_response(key, items, pagination, schema):
    return success_response({
        key: schema.dump(items, many=True),
        "pagination": pagination,
    })
