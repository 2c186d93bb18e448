"""Platform-wide figures for the admin analytics dashboard."""
from sqlalchemy import func

from agrilinker import db
from agrilinker.models import (Investment, LoanRequest, Order, Product, User,
                               LOAN_STATUSES, ORDER_STATUSES, ROLES)


def _counts_by(column, keys):
    counts = {key: 0 for key in keys}
    for value, count in db.session.query(column, func.count()).group_by(column).all():
        counts[value] = count
    return counts


def platform_analytics():
    """Counts and money totals across users, products, orders and loans."""
    loan_amounts = {status: 0 for status in LOAN_STATUSES}
    for status, total in db.session.query(
        LoanRequest.status, func.coalesce(func.sum(LoanRequest.amount), 0)
    ).group_by(LoanRequest.status).all():
        loan_amounts[status] = float(total)

    farmer_status = {}
    for status, count in db.session.query(
        User.verification_status, func.count()
    ).filter(User.role == 'farmer').group_by(User.verification_status).all():
        farmer_status[status] = count

    revenue = db.session.query(func.coalesce(func.sum(Order.total_amount), 0)).scalar()
    invested = db.session.query(func.coalesce(func.sum(Investment.amount), 0)).scalar()

    return {
        'success': True,
        'users': _counts_by(User.role, ROLES),
        'farmerVerification': {
            'pending': farmer_status.get('pending', 0),
            'verified': farmer_status.get('verified', 0),
            'rejected': farmer_status.get('rejected', 0),
        },
        'products': _counts_by(Product.status, ['available', 'out-of-stock', 'sold-out']),
        'orders': _counts_by(Order.delivery_status, ORDER_STATUSES),
        'totalRevenue': float(revenue),
        'loans': {
            'counts': _counts_by(LoanRequest.status, LOAN_STATUSES),
            'amounts': loan_amounts,
        },
        'totalInvested': float(invested),
    }
