# bigthree/api/routes.py
"""
Big three — API routes
- GET  /api/bigthree   usage hint
- POST /api/bigthree   sun / moon / ascendant signs
(alias: /bigthree)

Errors:
- ValidationError family → 400 {ok:false, error, code, details}
- anything else bubbles to the app-level handler → 500
- other methods → 405 via the app-level HTTPException handler
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from bigthree.core.chart import BirthQuery, compute_big_three
from bigthree.core.validators import ValidationError, parse_bigthree_payload
from bigthree.utils.metrics import MET_CHARTS

log = logging.getLogger(__name__)
api = Blueprint("bigthree", __name__)

USAGE_HINT = "POST {date,time,place} ou {date,time,lat,lon}"


# ───────────────────────── helpers ─────────────────────────
def _json_error(e: ValidationError, http: int = 400):
    out: Dict[str, Any] = {"ok": False, "error": str(e), "code": e.code, "details": e.errors()}
    return jsonify(out), http


def _body_json() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError("JSON body must be valid JSON")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def _ext() -> Dict[str, Any]:
    return current_app.extensions.get("bigthree", {})


# ───────────────────────── routes ─────────────────────────
@api.route("/api/bigthree", methods=["GET", "POST"])
@api.route("/bigthree", methods=["GET", "POST"])
def bigthree():
    if request.method == "GET":
        return jsonify(ok=True, hint=USAGE_HINT), 200

    ext = _ext()
    cfg = ext.get("cfg") or {}
    try:
        payload = parse_bigthree_payload(_body_json())
        lang = payload.get("lang") or cfg.get("sign_lang") or "fr"
        result = compute_big_three(
            BirthQuery.from_payload(payload),
            ephemeris=ext.get("ephemeris"),
            geocoder=ext.get("geocoder"),
            lang=lang,
        )
    except ValidationError as e:
        log.info("bigthree rejected (%s): %s", e.code, e)
        MET_CHARTS.labels(outcome=e.code).inc()
        return _json_error(e)
    except Exception:
        MET_CHARTS.labels(outcome="internal_error").inc()
        raise

    MET_CHARTS.labels(outcome="ok" if result.moon_sign is not None else "time_unknown").inc()
    return jsonify(result.to_dict()), 200
