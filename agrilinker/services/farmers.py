"""Admin verification of farmer accounts."""
import logging
from datetime import datetime

from agrilinker import db
from agrilinker.errors import ConflictError
from agrilinker.models import User
from agrilinker.security import get_user_or_404
from agrilinker.validators import clean_text

logger = logging.getLogger(__name__)


def pending_farmers():
    return User.query.filter_by(role='farmer', verification_status='pending').order_by(
        User.created_at
    ).all()


def _pending_farmer(user_id):
    farmer = get_user_or_404(user_id)
    if not farmer.is_farmer:
        raise ConflictError(f'{farmer.name} is not a farmer')
    if farmer.verification_status != 'pending':
        raise ConflictError(f'{farmer.name} is already {farmer.verification_status}')
    return farmer


def approve_farmer(user_id):
    farmer = _pending_farmer(user_id)
    farmer.verification_status = 'verified'
    farmer.rejection_reason = None
    farmer.verified_at = datetime.utcnow()
    db.session.commit()
    logger.info('Farmer %s verified', farmer.email)
    return farmer


def reject_farmer(user_id, reason=None):
    """Reject an application; the reason is optional."""
    farmer = _pending_farmer(user_id)
    farmer.verification_status = 'rejected'
    farmer.rejection_reason = clean_text(reason, 'reason') or None
    db.session.commit()
    logger.info('Farmer %s rejected: %s', farmer.email, farmer.rejection_reason or 'no reason given')
    return farmer
