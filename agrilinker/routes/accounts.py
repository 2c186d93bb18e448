"""Account routes for AgriLinker - registration, tokens and profiles."""
import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker import db
from agrilinker.errors import (AuthenticationError, ConflictError, NotFoundError, PermissionDenied,
                               ValidationError)
from agrilinker.models import User
from agrilinker.security import ensure_self_or_admin, issue_token
from agrilinker.services.products import image_from_data_url, save_image
from agrilinker.validators import (normalize_email, text_field, validate_email, validate_nid,
                                   validate_password)

accounts_bp = Blueprint('accounts', __name__)

logger = logging.getLogger(__name__)

# Admins are created from the CLI, never through signup
SIGNUP_ROLES = ['buyer', 'farmer']


@accounts_bp.route('/users', methods=['POST'])
def register():
    """Create a marketplace account."""
    data = request.get_json(silent=True) or {}
    name = text_field(data, 'name', required=True)
    email = validate_email(normalize_email(text_field(data, 'email', required=True)))
    role = text_field(data, 'role').lower() or 'buyer'
    if role not in SIGNUP_ROLES:
        raise ValidationError('Role must be buyer or farmer')
    if not data.get('password'):
        raise ValidationError('password is required')
    password = validate_password(data.get('password'), data.get('confirm_password'))
    uid = text_field(data, 'uid')

    # Check if user already exists
    if User.query.filter_by(email=email).first():
        return jsonify({'message': 'user already exists', 'insertedId': None})
    if uid and User.query.filter_by(uid=uid).first():
        raise ConflictError('This account id is already in use')

    user = User(
        name=name,
        email=email,
        role=role,
        photo_url=text_field(data, 'image') or text_field(data, 'photoURL') or None,
        verification_status='pending' if role == 'farmer' else 'unverified',
    )
    if uid:
        user.uid = uid
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info('Registered %s as %s', email, role)
    return jsonify({'insertedId': user.uid}), 201


@accounts_bp.route('/jwt', methods=['POST'])
def issue_access_token():
    """Exchange email and password for a bearer token."""
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get('email'))
    password = data.get('password')
    user = User.query.filter_by(email=email).first()
    if user is None or not isinstance(password, str) or not user.check_password(password):
        raise AuthenticationError('Invalid email or password')
    return jsonify({'token': issue_token(user)})


@accounts_bp.route('/users/<email>')
@login_required
def get_user(email):
    """Fetch a user record by email."""
    ensure_self_or_admin(email)
    user = User.query.filter_by(email=normalize_email(email)).first()
    if user is None:
        raise NotFoundError('User not found')
    return jsonify(user.to_dict())


@accounts_bp.route('/users/update-profile', methods=['PATCH'])
@login_required
def update_profile():
    """Update the caller's display name, NID, address and phone."""
    data = request.get_json(silent=True) or {}
    display_name = text_field(data, 'displayName')
    if not display_name:
        raise ValidationError('Full name is required')

    current_user.name = display_name
    current_user.nid_number = validate_nid(text_field(data, 'nidNumber'))
    if 'address' in data:
        current_user.address = text_field(data, 'address')
    if 'phone' in data:
        current_user.phone = text_field(data, 'phone')
    db.session.commit()

    return jsonify({'success': True, 'user': current_user.to_dict()})


@accounts_bp.route('/profile/<uid>', methods=['PATCH'])
@login_required
def update_profile_by_uid(uid):
    """Legacy uid-addressed profile update (name and photo)."""
    if uid != current_user.uid and not current_user.is_admin:
        raise PermissionDenied('Forbidden access')
    user = User.query.filter_by(uid=uid).first()
    if user is None:
        raise NotFoundError('User not found')

    data = request.get_json(silent=True) or {}
    name = text_field(data, 'name')
    photo_url = text_field(data, 'photoURL')
    if name:
        user.name = name
    if photo_url:
        user.photo_url = photo_url
    db.session.commit()

    return jsonify({'success': True, 'modifiedCount': 1, 'user': user.to_dict()})


@accounts_bp.route('/profile/upload', methods=['POST'])
@accounts_bp.route('/profile/upload/imgbb', methods=['POST'])
@login_required
def upload_profile_photo():
    """Store a new profile picture, sent as a multipart `image` or a base64 `imageData` data URL."""
    image = request.files.get('image')
    if image is None:
        data = request.get_json(silent=True) or {}
        image_data = text_field(data, 'imageData')
        if image_data:
            image = image_from_data_url(image_data)

    current_user.photo_url = save_image(image)
    db.session.commit()
    logger.info('Profile photo updated for %s', current_user.email)

    return jsonify({'success': True, 'imageUrl': current_user.photo_url, 'user': current_user.to_dict()})
