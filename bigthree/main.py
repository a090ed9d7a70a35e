# bigthree/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Any, Optional

from flask import Flask, Response, current_app, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from bigthree.api.routes import api as _bigthree_bp
from bigthree.core.ephemeris_adapter import Config as EphemerisConfig
from bigthree.core.ephemeris_adapter import Ephemeris, EphemerisAdapter, configure_default_adapter
from bigthree.core.geo import Geocoder, default_geocoder
from bigthree.utils.config import load_config
from bigthree.utils.metrics import CHART_OUTCOMES, GAUGE_APP_UP, MET_CHARTS, MET_REQUESTS, REQ_LATENCY
from bigthree.version import VERSION

_TRACKED_ROUTES = ("/", "/api/bigthree", "/bigthree", "/health", "/healthz", "/metrics")

# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

def _register_errors(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        resp = jsonify(
            ok=False,
            error=e.description,
            code=(e.name or "http_error").lower().replace(" ", "_"),
            path=request.path,
        )
        valid = getattr(e, "valid_methods", None)
        if valid:
            resp.headers["Allow"] = ", ".join(valid)
        return resp, e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return jsonify(
            ok=False,
            error=str(e) or type(e).__name__,
            code="internal_error",
            type=type(e).__name__,
            path=request.path,
        ), 500

# ───────────────────────── health & utils ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="bigthree", version=VERSION, health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        out = {"ok": True, "status": "ok"}
        eph = current_app.extensions.get("bigthree", {}).get("ephemeris")
        if isinstance(eph, EphemerisAdapter):
            out["ephemeris"] = eph.ephemeris_diagnostics()
        return jsonify(out), 200

def _metrics_auth_ok() -> bool:
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    if not (user and pw):
        return True  # open when no credentials are configured
    auth = request.authorization
    return bool(auth and auth.type == "basic" and auth.username == user and auth.password == pw)

# ───────────────────────── app factory ─────────────────────────
def create_app(
    config_path: Optional[str] = None,
    *,
    ephemeris: Optional[Ephemeris] = None,
    geocoder: Optional[Geocoder] = None,
) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    cfg = load_config(config_path)
    eph_cfg = cfg.ephemeris
    if ephemeris is None:
        ephemeris = configure_default_adapter(EphemerisConfig(
            kernel_name=eph_cfg.kernel,
            kernel_path=eph_cfg.path or None,
            data_dir=eph_cfg.data_dir,
        ))
    if geocoder is None:
        geocoder = default_geocoder(cfg.geocoder.user_agent, cfg.geocoder.timeout_s)

    app.extensions["bigthree"] = {"cfg": cfg, "ephemeris": ephemeris, "geocoder": geocoder}

    # Seed metrics
    for route in _TRACKED_ROUTES:
        MET_REQUESTS.labels(route=route).inc(0)
        REQ_LATENCY.labels(route=route).observe(0.0)
    for outcome in CHART_OUTCOMES:
        MET_CHARTS.labels(outcome=outcome).inc(0)
    GAUGE_APP_UP.set(1.0)

    @app.before_request
    def _before():
        p = request.path or ""
        if p in _TRACKED_ROUTES:
            MET_REQUESTS.labels(route=p).inc()
            request._t0 = perf_counter()  # type: ignore[attr-defined]

    @app.after_request
    def _after(resp):
        t0: Any = getattr(request, "_t0", None)
        if t0 is not None:
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    _register_health(app)
    _register_errors(app)
    app.register_blueprint(_bigthree_bp)

    @app.get("/favicon.ico")
    def _noop_favicon():
        return ("", 204)

    # /metrics (Basic Auth when METRICS_USER/METRICS_PASS are set)
    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)

    # CORS for the quiz front-end: one origin only
    CORS(
        app,
        resources={r"/*": {"origins": cfg.cors.allow_origin}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=600,
    )

    app.logger.info(
        "App initialized; version=%s; sign_lang=%s; cors_origin=%s; ephemeris=%s",
        VERSION, cfg.sign_lang, cfg.cors.allow_origin, eph_cfg.path or eph_cfg.kernel,
    )
    return app

# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
