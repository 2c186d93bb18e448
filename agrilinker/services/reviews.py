"""Product ratings collected after checkout."""
import logging

from sqlalchemy import func

from agrilinker import db
from agrilinker.errors import ConflictError, NotFoundError, ValidationError
from agrilinker.models import Product, Review
from agrilinker.validators import clean_text

logger = logging.getLogger(__name__)


def parse_rating(value):
    """Ratings are whole stars from 1 to 5."""
    if value is None or value == '':
        raise ValidationError('Please select a rating before submitting')
    if isinstance(value, bool):
        raise ValidationError('Rating must be a whole number from 1 to 5')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError('Rating must be a whole number from 1 to 5')
        value = int(value)
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Rating must be a whole number from 1 to 5')
    if not 1 <= rating <= 5:
        raise ValidationError('Rating must be between 1 and 5')
    return rating


def submit_review(email, product_id, rating, text=''):
    """Complete the buyer's review of a product, creating it if none was pending."""
    rating = parse_rating(rating)
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError('Product not found')

    review = Review.query.filter_by(product_id=product.id, user_email=email).first()
    if review is None:
        review = Review(product_id=product.id, user_email=email)
        db.session.add(review)
    review.rating = rating
    review.review = clean_text(text, 'review')
    review.status = 'complete'
    db.session.commit()

    logger.info('%s rated product %s with %s stars', email, product.id, rating)
    return review


def skip_review(email, product_id):
    review = Review.query.filter_by(product_id=product_id, user_email=email).first()
    if review is None:
        raise NotFoundError('No review to skip for this product')
    if review.status != 'pending':
        raise ConflictError(f'Review is already {review.status}')
    review.status = 'skipped'
    db.session.commit()
    return review


def pending_reviews(email):
    return Review.query.filter_by(user_email=email, status='pending').order_by(Review.created_at).all()


def rating_summaries(product_ids):
    """Average rating and count of completed reviews, keyed by product id."""
    summaries = {product_id: {'averageRating': 0, 'reviewCount': 0} for product_id in product_ids}
    if not product_ids:
        return summaries

    rows = db.session.query(
        Review.product_id, func.avg(Review.rating), func.count(Review.id)
    ).filter(
        Review.product_id.in_(product_ids),
        Review.status == 'complete'
    ).group_by(Review.product_id).all()

    for product_id, average, count in rows:
        summaries[product_id] = {'averageRating': round(float(average), 1), 'reviewCount': count}
    return summaries


def product_reviews(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError('Product not found')
    reviews = Review.query.filter_by(product_id=product.id, status='complete').order_by(
        Review.updated_at.desc()
    ).all()
    summary = rating_summaries([product.id])[product.id]
    return {'success': True, 'productId': product.id, 'reviews': [r.to_dict() for r in reviews], **summary}
