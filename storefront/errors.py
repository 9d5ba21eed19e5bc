from flask import jsonify, render_template, request
from werkzeug.exceptions import HTTPException


def wants_json():
    return request.path.startswith("/api/")


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(e):
        if wants_json():
            resp = jsonify({"error": e.description})
            resp.status_code = e.code
            # keep headers such as Allow on 405
            for key, value in e.get_headers():
                if key.lower() != "content-type":
                    resp.headers[key] = value
            return resp
        if e.code == 404:
            return render_template("404.html"), 404
        return e
