from flask import Blueprint, request, jsonify

from coursemart.errors import APIError, NotFoundError
from coursemart.extensions import db
from coursemart.models import Ad
from coursemart.utils.auth import role_required

bp = Blueprint("ads", __name__)


def get_ad_or_404(ad_id):
    ad = db.session.get(Ad, ad_id)
    if not ad:
        raise NotFoundError("Ad not found")
    return ad


@bp.route("", methods=["POST"])
@role_required("admin")
def create_ad():
    data = request.get_json(silent=True) or {}

    if not data.get("image") or not data.get("title") or not data.get("subtitle"):
        raise APIError("Please provide image, title, and subtitle for the ad.", 400)

    ad = Ad()
    for field, column in Ad.FIELDS.items():
        if data.get(field) is not None:
            setattr(ad, column, data[field])

    db.session.add(ad)
    db.session.commit()
    return jsonify(ad.to_dict()), 201


@bp.route("", methods=["GET"])
def get_ads():
    ads = Ad.query.order_by(Ad.priority.desc(), Ad.created_at.desc(), Ad.id.desc()).all()
    return jsonify([ad.to_dict() for ad in ads])


@bp.route("/<int:ad_id>", methods=["GET"])
def get_ad(ad_id):
    return jsonify(get_ad_or_404(ad_id).to_dict())


@bp.route("/<int:ad_id>", methods=["PUT"])
@role_required("admin")
def update_ad(ad_id):
    ad = get_ad_or_404(ad_id)
    data = request.get_json(silent=True) or {}

    # empty values keep the stored field
    for field, column in Ad.FIELDS.items():
        if data.get(field):
            setattr(ad, column, data[field])

    db.session.commit()
    return jsonify(ad.to_dict())


@bp.route("/<int:ad_id>", methods=["DELETE"])
@role_required("admin")
def delete_ad(ad_id):
    ad = get_ad_or_404(ad_id)
    db.session.delete(ad)
    db.session.commit()
    return jsonify({"message": "Ad removed successfully"})
