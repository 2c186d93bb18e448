"""Product listing, search tracking and recommendations."""
import base64
import binascii
import io
import logging
import os
import re
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from agrilinker import db
from agrilinker.errors import NotFoundError, PermissionDenied, ValidationError
from agrilinker.models import (CartItem, OrderItem, Product, Review, SearchActivity,
                               PRODUCT_CATEGORIES, QUANTITY_UNITS)
from agrilinker.validators import clean_text, positive_number, require_fields, text_field

logger = logging.getLogger(__name__)

# Allowed file extensions
ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}


def allowed_file(filename):
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def save_image(file):
    """Store an uploaded image and return the path it is served from."""
    if not file or not file.filename:
        raise ValidationError('Please select an image')
    if not allowed_file(file.filename):
        raise ValidationError('Image must be a png, jpg, jpeg, gif or webp file')

    filename = f'{uuid.uuid4().hex}_{secure_filename(file.filename)}'
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    file.save(os.path.join(folder, filename))
    return f'/uploads/{filename}'


DATA_URL_PATTERN = re.compile(r'^data:image/(?P<ext>[a-z]+);base64,(?P<payload>.+)$', re.DOTALL)


def image_from_data_url(data_url):
    """Wrap a base64 `data:image/...` URL, as read by the browser's FileReader, as an upload."""
    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        raise ValidationError('Image data must be a base64 data URL')
    try:
        raw = base64.b64decode(match.group('payload'), validate=True)
    except binascii.Error:
        raise ValidationError('Image data is not valid base64')
    return FileStorage(stream=io.BytesIO(raw), filename=f'profile.{match.group("ext")}')


def get_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError('Product not found')
    return product


def create_product(farmer_email, form, image_file):
    """Validate the add-product form and list the product."""
    require_fields(form, 'name', 'quantityValue', 'price')
    category = (text_field(form, 'category') or 'vegetables').lower()
    unit = (text_field(form, 'quantityUnit') or 'kg').lower()
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError(f'Unknown category: {category}')
    if unit not in QUANTITY_UNITS:
        raise ValidationError(f'Unknown quantity unit: {unit}')

    product = Product(
        name=text_field(form, 'name', required=True),
        category=category,
        quantity_value=positive_number(form.get('quantityValue'), 'quantityValue'),
        quantity_unit=unit,
        price=positive_number(form.get('price'), 'price'),
        farmer_email=farmer_email,
    )
    product.image = save_image(image_file)
    product.refresh_status()
    db.session.add(product)
    db.session.commit()
    logger.info('Product %s listed by %s', product.id, farmer_email)
    return product


def delete_product(user, product_id):
    product = get_product(product_id)
    if not user.is_admin and product.farmer_email != user.email:
        raise PermissionDenied('You can only delete your own products')
    CartItem.query.filter_by(product_id=product.id).delete()
    # order lines keep their frozen copy of the product
    OrderItem.query.filter_by(product_id=product.id).update({'product_id': None})
    Review.query.filter_by(product_id=product.id).delete()
    db.session.delete(product)
    db.session.commit()
    logger.info('Product %s deleted by %s', product_id, user.email)


def mark_sold_out(user, product_id):
    product = get_product(product_id)
    if not user.is_admin and product.farmer_email != user.email:
        raise PermissionDenied('You can only update your own products')
    product.status = 'sold-out'
    db.session.commit()
    return product


def search_products(email, term):
    """Name search; the top match's category is counted towards the user's interests."""
    term = clean_text(term, 'searchTerm')
    if not term:
        raise ValidationError('Please enter a search term')

    # % and _ typed by the user match literally
    escaped = term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    products = Product.query.filter(
        Product.name.ilike(f'%{escaped}%', escape='\\')
    ).order_by(Product.name).all()
    if not products:
        raise NotFoundError('No products found with that name!')

    category = products[0].category
    activity = SearchActivity.query.filter_by(user_email=email, category=category).first()
    if activity is None:
        activity = SearchActivity(user_email=email, category=category, count=0)
        db.session.add(activity)
    activity.count += 1
    db.session.commit()
    return products, category


def recommended_products(email):
    """Available products, most-searched categories first, newest first within a category."""
    ranking = {
        activity.category: activity.count
        for activity in SearchActivity.query.filter_by(user_email=email).all()
    }
    products = Product.query.filter_by(status='available').order_by(
        Product.created_at.desc(), Product.id.desc()
    ).all()
    # sort is stable, so creation order survives within equal counts
    return sorted(products, key=lambda product: ranking.get(product.category, 0), reverse=True)
