from __future__ import annotations

from typing import Any, Dict, Optional, Tuple
import io
import logging
import secrets

from flask import (
    Flask,
    abort,
    jsonify,
    redirect,
    render_template_string,
    request,
    send_file,
    session as cookie_session,
    url_for,
)

from ..core.errors import BusyError, PrintError, RenderError, ValidationError
from ..core.models import PrintRequest, SessionStatus
from ..printing import (
    CommandEncoder,
    DocumentRenderer,
    PillowDocumentRenderer,
    PrintSession,
    SocketTransport,
    generate_document,
)
from .config import Settings

logger = logging.getLogger(__name__)


PAGE_HTML = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Network Receipt Printer</title>
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
           margin: 0; background: #f4f5fb; color: #1d2233; }
    main { max-width: 420px; margin: 0 auto; padding: 24px 16px; }
    .card { background: #fff; border-radius: 12px; padding: 16px; margin-bottom: 16px;
            box-shadow: 0 4px 16px rgba(29, 34, 51, 0.08); text-align: center; }
    label { display: block; font-weight: 600; margin: 12px 0 4px; }
    input[type=text], textarea { width: 100%; box-sizing: border-box; padding: 12px;
            border: 1px solid #c9cde0; border-radius: 8px; font-size: 16px; }
    button { width: 100%; padding: 16px; margin-top: 16px; border: 0; border-radius: 8px;
             font-size: 16px; background: #b1b5ff; cursor: pointer; }
    .error { color: #c0392b; }
  </style>
</head>
<body>
<main>
  <div class="card">
    <strong>Printer Status</strong>
    <div class="{{ 'error' if failed else '' }}">{{ status }}</div>
  </div>
  {% if error %}<div class="card error">{{ error }}</div>{% endif %}
  <form method="post" action="{{ url_for('print_ticket') }}">
    <input type="hidden" name="csrf_token" value="{{ csrf_token }}">
    <label for="host">Printer IP Address</label>
    <input id="host" type="text" name="host" value="{{ host }}" placeholder="Example: 192.168.1.100">
    <label for="text">Text to Print</label>
    <textarea id="text" name="text" rows="5" placeholder="Enter text to print"></textarea>
    <button type="submit">Print</button>
    <button type="submit" formaction="{{ url_for('generate_pdf') }}">Generate PDF</button>
  </form>
</main>
</body>
</html>
"""


def _request_fields() -> Dict[str, Any]:
    if request.is_json:
        data = request.get_json(silent=True) or {}
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def _parse_port(raw: Any, default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"Invalid printer port: {raw!r}")


def create_app(
    settings: Optional[Settings] = None,
    session: Optional[PrintSession] = None,
    renderer: Optional[DocumentRenderer] = None,
) -> Flask:
    settings = settings or Settings()
    if session is None:
        session = PrintSession(
            SocketTransport(write_timeout=settings.write_timeout),
            encoder=CommandEncoder(profile=settings.printer_profile or None),
            connect_timeout=settings.connect_timeout,
        )
    if renderer is None:
        renderer = PillowDocumentRenderer(font_path=settings.font_path or None, font_size=settings.font_size)

    app = Flask(__name__)
    # Without a configured key the form tokens only last for this process
    app.secret_key = settings.secret_key or secrets.token_hex(32)
    app.config.update({
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Strict",
    })
    app.config["PRINT_SESSION"] = session

    def _status_text() -> Tuple[str, bool]:
        events = session.events
        if not events:
            return "Not Connected", False
        last = events[-1]
        return last.message, last.state.status is SessionStatus.FAILED

    def _get_csrf_token() -> str:
        token = cookie_session.get("csrf_token")
        if not isinstance(token, str) or not token:
            token = secrets.token_urlsafe(32)
            cookie_session["csrf_token"] = token
        return token

    def _require_csrf(form: Dict[str, Any]) -> None:
        token = str(form.get("csrf_token", ""))
        session_token = str(cookie_session.get("csrf_token", ""))
        if not session_token or not secrets.compare_digest(token, session_token):
            logger.warning(f"Rejected form post to {request.path} without a valid CSRF token")
            abort(400)

    def _read_fields() -> Tuple[Dict[str, Any], bool]:
        """Return the posted fields and whether they came from the HTML form.

        JSON bodies cannot be sent cross-site without a CORS preflight, so only
        form posts need the token.
        """
        if request.is_json:
            return _request_fields(), False
        _require_csrf(request.form)
        return _request_fields(), True

    @app.get("/")
    def home():
        status, failed = _status_text()
        return render_template_string(
            PAGE_HTML,
            status=status,
            failed=failed,
            error=request.args.get("e"),
            host=settings.printer_host,
            csrf_token=_get_csrf_token(),
        )

    @app.get("/status")
    def status():
        state = session.state
        return jsonify({
            "status": state.status.value,
            "busy": session.busy,
            "error": state.error.message if state.error else None,
            "events": [event.to_dict() for event in session.events],
        })

    @app.post("/print")
    def print_ticket():
        fields, from_form = _read_fields()
        try:
            req = PrintRequest(
                host=str(fields.get("host") or settings.printer_host or "").strip(),
                text=str(fields.get("text") or ""),
                port=_parse_port(fields.get("port"), settings.printer_port),
            )
            final = session.run(req)
        except ValidationError as exc:
            if from_form:
                return redirect(url_for("home", e=exc.message))
            return jsonify({"ok": False, "error": exc.message}), 400
        except BusyError as exc:
            if from_form:
                return redirect(url_for("home", e=exc.message))
            return jsonify({"ok": False, "error": exc.message}), 409

        # The status card on the home page shows the outcome
        if from_form:
            return redirect(url_for("home"))

        body = {
            "ok": final.status is SessionStatus.COMPLETED,
            "status": final.status.value,
            "events": [event.to_dict() for event in session.events],
        }
        if final.error is not None:
            body["error"] = final.error.message
            body["reason"] = type(final.error).__name__
            return jsonify(body), 502
        return jsonify(body)

    @app.post("/pdf")
    def generate_pdf():
        fields, from_form = _read_fields()
        try:
            document = generate_document(str(fields.get("text") or ""), renderer)
            data = document.to_pdf()
        except ValidationError as exc:
            if from_form:
                return redirect(url_for("home", e=exc.message))
            return jsonify({"ok": False, "error": exc.message}), 400
        except PrintError as exc:
            if isinstance(exc, RenderError):
                logger.error(f"PDF generation failed: {exc.message}")
            if from_form:
                return redirect(url_for("home", e=exc.message))
            return jsonify({"ok": False, "error": exc.message}), 500
        return send_file(
            io.BytesIO(data),
            mimetype="application/pdf",
            as_attachment=True,
            download_name="ticket.pdf",
        )

    @app.after_request
    def add_headers(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    return app
