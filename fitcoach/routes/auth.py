import logging

from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, set_access_cookies, unset_jwt_cookies

from fitcoach.extensions import db
from fitcoach.models.user import User
from fitcoach.utils.decorators import role_required

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login_post():
    if not request.is_json:
        return jsonify({"msg": "Missing JSON"}), 400

    data = request.get_json()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify({"msg": "Email and password are required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logging.info(f"Login failed for {email}")
        return jsonify({"error": "unauthenticated", "msg": "Invalid credentials"}), 401

    if user.status == "pending":
        return jsonify({"error": "forbidden", "msg": "Account is pending approval"}), 403

    if user.status == "suspended":
        return jsonify({"error": "forbidden", "msg": "Account is suspended"}), 403

    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role},
    )

    response = jsonify({
        "msg": "Login successful",
        "access_token": access_token,
        "user": {
            "id": user.id,
            "name": user.name,
            "role": user.role
        }
    })
    set_access_cookies(response, access_token)
    return response, 200


@auth_bp.route("/me", methods=["GET"])
@role_required()
def me(cap):
    user = db.session.get(User, cap.user_id)
    return jsonify(user.to_dict()), 200


@auth_bp.route("/logout", methods=["POST"])
@role_required()
def logout(cap):
    response = jsonify({"msg": "Logout successful"})
    unset_jwt_cookies(response)
    return response, 200
