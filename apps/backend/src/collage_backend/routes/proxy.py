"""Proxy routes to the captioning, image-edit and diffusion services."""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from collage_shared.files import DecodeFailure
from collage_shared.protocol import (
    ProtocolError,
    parse_diffusion_request,
    parse_edit_request,
)

from ..services.proxy_service import ProxyError

logger = logging.getLogger(__name__)

proxy_bp = Blueprint("proxy", __name__, url_prefix="/api")


def _error(message: str, status: int):
    return jsonify({"error": message}), status


@proxy_bp.post("/describe")
def describe():
    """Caption an image; an empty caption when no key is configured."""
    service = current_app.config["analysis_service"]
    config = current_app.config["collage_config"]
    data = request.get_json(silent=True) or {}

    try:
        out = service.fal.describe(data.get("imageDataURL"), deadline_s=config.describe_timeout)
    except DecodeFailure as e:
        return _error(str(e), 400)
    except ProxyError as e:
        logger.warning("Describe failed: %s", e)
        return _error(str(e), e.status)
    return jsonify(out)


@proxy_bp.post("/qwen-edit")
def qwen_edit():
    """Edit an image with an instruction and return the result URL."""
    service = current_app.config["analysis_service"]
    config = current_app.config["collage_config"]

    try:
        req = parse_edit_request(request.get_json(silent=True))
        req.validate()
        url = service.fal.edit_image(req, deadline_s=config.edit_timeout)
    except (ProtocolError, DecodeFailure) as e:
        return _error(str(e), 400)
    except ProxyError as e:
        logger.warning("Image edit failed: %s", e)
        return _error(str(e), e.status)
    return jsonify({"url": url})


@proxy_bp.post("/diffuse")
def diffuse():
    """Generate a PNG from a prompt."""
    service = current_app.config["analysis_service"]

    try:
        req = parse_diffusion_request(request.get_json(silent=True))
        png = service.diffusion.generate(req)
    except ProtocolError as e:
        return _error(str(e), 400)
    except ProxyError as e:
        logger.warning("Diffusion failed: %s", e)
        return _error(str(e), e.status)
    return Response(png, mimetype="image/png", headers={"Cache-Control": "public, max-age=86400"})
