from functools import wraps

from flask import Blueprint, current_app, jsonify, request, session

from app.services import recommendations as rec_service
from app.services import skips as skips_service
from recommender.errors import InvalidInput, RecommenderError

api_bp = Blueprint("api", __name__, url_prefix="/api")


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not session.get("user_id"):
            return jsonify({"error": "auth required"}), 401
        return fn(*args, **kwargs)

    return wrapper


@api_bp.errorhandler(RecommenderError)
def handle_recommender_error(error):
    return jsonify({"error": error.message, "code": error.code}), error.status


def _parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off", ""}:
        return False
    raise InvalidInput("onboarding must be true or false")


@api_bp.get("/session")
def get_session():
    user_id = session.get("user_id")
    return jsonify({"logged_in": bool(user_id), "user": user_id})


@api_bp.get("/albums/random")
@login_required
def random_album():
    user_id = session["user_id"]
    mode = request.args.get("mode", "smart")
    payload = rec_service.get_random_album(current_app.config["DATABASE"], user_id, mode=mode)
    return jsonify(payload)


@api_bp.get("/albums/swipe")
@login_required
def swipe_batch():
    user_id = session["user_id"]
    limit = request.args.get("limit")
    onboarding = _parse_bool(request.args.get("onboarding"))
    payload = rec_service.get_swipe_batch(
        current_app.config["DATABASE"],
        user_id,
        limit=limit,
        onboarding=onboarding,
    )
    return jsonify(payload)


@api_bp.get("/compatibility/<other_user_id>")
@login_required
def compatibility(other_user_id):
    user_id = session["user_id"]
    result = rec_service.get_compatibility(current_app.config["DATABASE"], user_id, other_user_id)
    return jsonify(result)


@api_bp.get("/taste-profile")
@login_required
def taste_profile():
    user_id = session["user_id"]
    profile = rec_service.get_taste_profile(current_app.config["DATABASE"], user_id)
    return jsonify({"profile": profile})


@api_bp.post("/albums/<album_id>/skip")
@login_required
def skip_album(album_id):
    user_id = session["user_id"]
    data = request.get_json(silent=True) or {}
    skip = skips_service.record_skip(user_id, album_id, data.get("reason"))
    return jsonify({"ok": True, "skip": skip})


@api_bp.patch("/albums/<album_id>/skip")
@login_required
def update_skip(album_id):
    user_id = session["user_id"]
    data = request.get_json(silent=True) or {}
    if "reason" not in data:
        raise InvalidInput("reason is required")
    skip = skips_service.update_skip(user_id, album_id, data.get("reason"))
    return jsonify({"ok": True, "skip": skip})


@api_bp.get("/albums/<album_id>/skip")
@login_required
def get_skip(album_id):
    user_id = session["user_id"]
    skip = skips_service.get_skip(user_id, album_id)
    return jsonify({"skip": skip})
