from flask import Flask, render_template, request, jsonify
from requests.exceptions import RequestException

from curl_parser import parse_curl

app = Flask(__name__)
app.config.from_mapping(
    HOST="0.0.0.0",
    PORT=7700,
    DEBUG=False,
    DEFAULT_TIMEOUT=30,
)
# CURL_APP_PORT=8080 etc.
app.config.from_prefixed_env("CURL_APP")


def _curl_from_payload():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        return None
    curl_cmd = payload.get("curl", "")
    if not isinstance(curl_cmd, str) or not curl_cmd.strip():
        return None
    return curl_cmd


@app.get("/")
def index():
    return render_template("index.html")


@app.post("/parse")
def parse():
    curl_cmd = _curl_from_payload()
    if curl_cmd is None:
        return jsonify({"error": "Field 'curl' is required"}), 400

    try:
        spec = parse_curl(curl_cmd)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        app.logger.exception("failed to parse curl command")
        return jsonify({"error": f"Internal error: {e}"}), 500

    return jsonify({"request": spec.to_dict()}), 200


@app.post("/prepare")
def prepare():
    """Builds the request requests would send for the command, without sending it."""
    curl_cmd = _curl_from_payload()
    if curl_cmd is None:
        return jsonify({"error": "Field 'curl' is required"}), 400

    try:
        spec = parse_curl(curl_cmd)
        prepared = spec.to_request().prepare()
        kwargs = spec.to_requests_kwargs(default_timeout=app.config["DEFAULT_TIMEOUT"])
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except RequestException as e:
        return jsonify({"error": f"Request error: {e}"}), 400
    except Exception as e:
        app.logger.exception("failed to prepare request")
        return jsonify({"error": f"Internal error: {e}"}), 500

    body = prepared.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    return jsonify({
        "request": spec.to_dict(),
        "prepared": {
            "method": prepared.method,
            "url": prepared.url,
            "headers": dict(prepared.headers),
            "body": body,
        },
        "options": {
            "verify": kwargs["verify"],
            "timeout": kwargs["timeout"],
            "proxies": kwargs["proxies"],
            "allow_redirects": kwargs["allow_redirects"],
        },
    }), 200


if __name__ == "__main__":
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=app.config["DEBUG"])
