from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from sourcepatch.codec import (
    anchor_from_dict,
    decode_batch_document,
    locator_result_to_dict,
    report_to_dict,
)
from sourcepatch.errors import BatchDecodeError, MissingSourceError, ProviderError
from sourcepatch.model.source_text import SourceText
from sourcepatch.providers.local import StaticStylesheetEnumerator
from sourcepatch.resolver.resolver import resolve_anchor

api_bp = Blueprint("api", __name__)


@api_bp.after_request
def add_cors_headers(response):
    """Allow cross-origin requests to the API."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response


@api_bp.route("/resolve", methods=["OPTIONS"])
@api_bp.route("/batch", methods=["OPTIONS"])
def preflight():
    """Handle CORS preflight for the editor front end."""
    return "", 204


@api_bp.errorhandler(BatchDecodeError)
def bad_batch(exc: BatchDecodeError):
    return jsonify({"error": str(exc), "index": exc.index}), 400


@api_bp.errorhandler(MissingSourceError)
def missing_source(exc: MissingSourceError):
    return jsonify({"error": str(exc), "path": exc.path}), 400


@api_bp.errorhandler(ProviderError)
def provider_failed(exc: ProviderError):
    return jsonify({"error": str(exc), "path": exc.path}), exc.status_code or 502


@api_bp.route("/resolve", methods=["POST"])
def resolve():
    """Locate an anchor in a project file, or in text sent with the request."""
    data = request.get_json(silent=True)
    if not data or "anchor" not in data or "path" not in data:
        return jsonify({"error": "path and anchor required"}), 400

    anchor = anchor_from_dict(data["anchor"])
    service = current_app.extensions["patch_service"]
    if "content" in data:
        source = SourceText(content=str(data["content"]), path=str(data["path"]))
    else:
        source = service.provider.read(str(data["path"]))
    result = resolve_anchor(source, anchor, service.config)
    return jsonify(locator_result_to_dict(result, source))


@api_bp.route("/batch", methods=["POST"])
def apply_batch():
    """Apply a change batch and return the per-file report.

    ``dry_run`` reports the patched text without writing it.
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"error": "JSON body required"}), 400

    batch, infos = decode_batch_document(data)
    dry_run = isinstance(data, dict) and bool(data.get("dry_run", False))
    enumerator = StaticStylesheetEnumerator(infos) if infos is not None else None

    service = current_app.extensions["patch_service"]
    report = service.apply(batch, persist=not dry_run, enumerator=enumerator)
    return jsonify(report_to_dict(report, include_content=dry_run))
