"""Bearer-token authentication and role checks."""
import logging
from functools import wraps

from flask import current_app, jsonify
from flask_login import current_user
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from agrilinker import db, login_manager
from agrilinker.errors import NotFoundError, PermissionDenied
from agrilinker.models import User

logger = logging.getLogger(__name__)

TOKEN_SALT = 'agrilinker-access-token'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def issue_token(user):
    """Sign an access token for the given user."""
    return _serializer().dumps({'uid': user.uid})


def user_from_token(token):
    """Return the user a token was issued for, or None if it is invalid or expired."""
    try:
        payload = _serializer().loads(token, max_age=current_app.config['TOKEN_MAX_AGE_SECONDS'])
    except SignatureExpired:
        logger.info('Rejected expired access token')
        return None
    except BadSignature:
        logger.warning('Rejected access token with bad signature')
        return None
    return User.query.filter_by(uid=payload.get('uid')).first()


@login_manager.request_loader
def load_user_from_request(request):
    """Authenticate API calls carrying `Authorization: Bearer <token>`."""
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return None
    return user_from_token(token.strip())


@login_manager.unauthorized_handler
def unauthorized():
    """Answer 401 so the client drops its token and logs out."""
    return jsonify({'success': False, 'message': 'Unauthorized access'}), 401


def role_required(*roles):
    """Decorator to require one of the given roles (use below @login_required)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if current_user.role not in roles:
                raise PermissionDenied('Forbidden access')
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = role_required('admin')


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def ensure_self_or_admin(email):
    """Only the owner of an email-addressed resource (or an admin) may touch it."""
    if current_user.is_admin:
        return
    if (email or '').strip().lower() != current_user.email:
        raise PermissionDenied('Forbidden access')
