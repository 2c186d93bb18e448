"""Loan requests, admin decisions and investor funding."""
import logging
from datetime import datetime

from agrilinker import db
from agrilinker.errors import ConflictError, NotFoundError, ValidationError
from agrilinker.models import Investment, LoanRequest
from agrilinker.validators import (clean_text, parse_date, positive_int, positive_number,
                                   require_fields, text_field)

logger = logging.getLogger(__name__)


# Valid status transitions for LoanRequest
LOAN_STATUS_TRANSITIONS = {
    'pending': ['approved', 'rejected'],
    'approved': ['disbursed'],
    'disbursed': ['completed'],
    'rejected': [],  # Terminal state
    'completed': [],  # Terminal state
}

# Loans still looking for money
INVESTABLE_STATUSES = ['pending', 'approved']


def create_loan_request(farmer, data):
    """Validate and store a farmer's loan application."""
    require_fields(data, 'amount', 'purpose', 'repaymentPeriod')
    previous_loans = (text_field(data, 'previousLoans') or 'no').lower()
    if previous_loans not in ('yes', 'no'):
        raise ValidationError('previousLoans must be yes or no')

    loan = LoanRequest(
        farmer_id=farmer.id,
        amount=positive_number(data.get('amount'), 'amount'),
        purpose=text_field(data, 'purpose', required=True),
        repayment_period=positive_int(data.get('repaymentPeriod'), 'repaymentPeriod'),
        preferred_start_date=parse_date(data.get('preferredStartDate'), 'preferredStartDate'),
        previous_loans=previous_loans,
        collateral=text_field(data, 'collateral'),
        notes=text_field(data, 'notes'),
    )
    db.session.add(loan)
    db.session.commit()
    logger.info('Loan request %s for %.2f submitted by %s', loan.id, loan.amount, farmer.email)
    return loan


def get_loan(loan_id):
    loan = db.session.get(LoanRequest, loan_id)
    if loan is None:
        raise NotFoundError('Loan request not found')
    return loan


def transition_loan(loan_id, new_status, reason=None):
    """Apply an admin decision if the loan's current status allows it."""
    loan = get_loan(loan_id)
    if new_status not in LOAN_STATUS_TRANSITIONS.get(loan.status, []):
        raise ConflictError(f'Cannot move loan from {loan.status} to {new_status}')

    now = datetime.utcnow()
    if new_status == 'rejected':
        reason = clean_text(reason, 'reason')
        if not reason:
            raise ValidationError('Please provide a reason for rejection')
        loan.rejection_reason = reason
        loan.decided_at = now
    elif new_status == 'approved':
        loan.decided_at = now
    elif new_status == 'disbursed':
        loan.disbursed_at = now
    elif new_status == 'completed':
        loan.completed_at = now

    loan.status = new_status
    db.session.commit()
    logger.info('Loan %s moved to %s', loan.id, new_status)
    return loan


def invest(investor, loan_id, amount):
    """Record a (simulated) investment payment against an open loan."""
    loan = get_loan(loan_id)
    amount = positive_number(amount, 'amount')
    if loan.status not in INVESTABLE_STATUSES:
        raise ConflictError(f'Loan is {loan.status} and no longer accepts investment')
    if loan.farmer_id == investor.id:
        raise ConflictError('You cannot invest in your own loan')

    outstanding = loan.outstanding_amount()
    if amount > outstanding:
        raise ValidationError(f'Only {outstanding:.2f} is still needed for this loan')

    investment = Investment(loan_id=loan.id, investor_id=investor.id, amount=amount)
    db.session.add(investment)
    db.session.commit()
    logger.info('%s invested %.2f in loan %s', investor.email, amount, loan.id)
    return investment


def investment_overview():
    """Funding progress per loan, for the investment management dashboard."""
    loans = LoanRequest.query.order_by(LoanRequest.created_at.desc()).all()
    projects = []
    for loan in loans:
        invested = loan.invested_amount()
        projects.append({
            'loanId': loan.id,
            'purpose': loan.purpose,
            'farmerId': loan.farmer.email,
            'status': loan.status,
            'amount': loan.amount,
            'investedAmount': invested,
            'fundedPercent': round(invested / loan.amount * 100, 1) if loan.amount else 0,
            'investorCount': loan.funding.count(),
        })
    return {
        'success': True,
        'projects': projects,
        'totalInvested': sum(project['investedAmount'] for project in projects),
        'totalInvestments': Investment.query.count(),
        'fullyFundedLoans': sum(1 for project in projects if project['fundedPercent'] >= 100),
    }
