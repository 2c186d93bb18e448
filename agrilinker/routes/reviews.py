"""Rating and review routes for AgriLinker."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker.errors import ValidationError
from agrilinker.services import reviews as review_service

reviews_bp = Blueprint('reviews', __name__)


def _product_id(data):
    try:
        return int(data.get('productId'))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError('productId is required')


@reviews_bp.route('/submit', methods=['POST'])
@login_required
def submit():
    data = request.get_json(silent=True) or {}
    review = review_service.submit_review(
        current_user.email, _product_id(data), data.get('rating'), data.get('review')
    )
    return jsonify({'success': True, 'review': review.to_dict()})


@reviews_bp.route('/skip', methods=['POST'])
@login_required
def skip():
    data = request.get_json(silent=True) or {}
    review = review_service.skip_review(current_user.email, _product_id(data))
    return jsonify({'success': True, 'review': review.to_dict()})


@reviews_bp.route('/pending')
@login_required
def pending():
    """Products the caller bought but has not rated yet."""
    reviews = review_service.pending_reviews(current_user.email)
    return jsonify({'success': True, 'reviews': [review.to_dict() for review in reviews]})


@reviews_bp.route('/product/<int:product_id>')
def product_reviews(product_id):
    return jsonify(review_service.product_reviews(product_id))


@reviews_bp.route('/ratings')
def ratings():
    """Rating summaries for several products at once: ?productIds=1,2,3"""
    raw = request.args.get('productIds', '')
    try:
        product_ids = [int(value) for value in raw.split(',') if value.strip()]
    except ValueError:
        raise ValidationError('productIds must be a comma separated list of numbers')
    summaries = review_service.rating_summaries(product_ids)
    return jsonify({'success': True, 'ratings': {str(key): value for key, value in summaries.items()}})
