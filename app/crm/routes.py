from pathlib import Path

from flask import Blueprint, abort, current_app, send_from_directory

bp = Blueprint("routes", __name__)
# Registered only when CLIENT_BUILD_DIR is configured.
client_bp = Blueprint("client", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s/DO probes. No DB access, minimal overhead.
    """
    return "ok", 200


def _client_build_dir() -> Path | None:
    raw = current_app.config.get("CLIENT_BUILD_DIR") or ""
    if not raw:
        return None
    root = Path(raw).resolve()
    if not (root / "index.html").is_file():
        return None
    return root


@client_bp.get("/")
@client_bp.get("/<path:path>")
def client_app(path: str = ""):
    """
    Serve the browser client's static build; unknown paths fall back to
    index.html so client-side routing works.
    """
    if path.startswith("api/"):
        abort(404)
    root = _client_build_dir()
    if root is None:
        abort(404)
    if path and (root / path).is_file():
        return send_from_directory(root, path)
    return send_from_directory(root, "index.html")
