"""Analysis, decision logging and history routes."""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, Response, abort, current_app, jsonify, request
from werkzeug.utils import secure_filename

from collage_analyzer import InputMissing
from collage_shared.files import ALLOWED_IMG_EXTS, DecodeFailure, decode_data_url, load_image
from collage_shared.protocol import (
    ProtocolError,
    parse_decision,
    parse_mode,
    validate_version,
)

logger = logging.getLogger(__name__)

analysis_bp = Blueprint("analysis", __name__, url_prefix="/api")


def _read_image():
    """Image from a multipart 'file' field or a JSON imageDataURL."""
    f = request.files.get("file")
    if f is not None:
        filename = secure_filename(f.filename or "")
        ext = Path(filename).suffix.lower()
        if ext and ext not in ALLOWED_IMG_EXTS:
            abort(400, description="File must be .png, .jpg, .jpeg, or .webp")
        return load_image(f.read())

    data = request.get_json(silent=True) or {}
    validate_version(data)
    data_url = data.get("imageDataURL")
    if not data_url:
        raise InputMissing()
    return decode_data_url(data_url)


@analysis_bp.post("/analyze")
def analyze():
    """Analyze an image and return features plus recommendations."""
    service = current_app.config["analysis_service"]
    body = request.get_json(silent=True) or {}

    try:
        mode = parse_mode(request.form.get("mode") or body.get("mode") or request.args.get("mode"))
        img = _read_image()
    except (InputMissing, DecodeFailure, ProtocolError) as e:
        abort(400, description=str(e))

    return jsonify(service.analyze(img, mode))


@analysis_bp.get("/analysis")
def latest_analysis():
    """Latest analysis result, if any."""
    service = current_app.config["analysis_service"]
    result = service.current()
    if result is None:
        abort(404, description="No analysis yet")
    return jsonify(result.to_dict())


@analysis_bp.post("/decision")
def decision():
    """Accept or skip the current recommendations."""
    service = current_app.config["analysis_service"]
    data = request.get_json(silent=True) or {}

    try:
        choice = parse_decision(data.get("decision") or request.form.get("decision"))
    except ProtocolError as e:
        abort(400, description=str(e))

    try:
        service.decide(choice)
    except InputMissing as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"status": "Saved (in-memory). Use the CSV export to download."})


@analysis_bp.get("/decisions.csv")
def decisions_csv():
    """Export the interaction log."""
    service = current_app.config["analysis_service"]
    return Response(
        service.decisions.to_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=interactions.csv"},
    )


@analysis_bp.get("/history")
def history():
    """Thumbnails of recent analyses, newest first."""
    service = current_app.config["analysis_service"]
    return jsonify({"key": service.history.key, "items": service.history.list()})
