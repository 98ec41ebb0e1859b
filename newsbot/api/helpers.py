from flask import request


def json_body():
    """The request's JSON object; malformed or non-object bodies read as {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
