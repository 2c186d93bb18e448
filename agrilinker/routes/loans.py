"""Loan and investment routes for AgriLinker."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker.errors import ValidationError
from agrilinker.models import Investment, LoanRequest
from agrilinker.security import admin_required, role_required
from agrilinker.services import loans as loan_service

loans_bp = Blueprint('loans', __name__)


@loans_bp.route('/loans', methods=['POST'])
@login_required
@role_required('farmer')
def request_loan():
    """Submit a loan request."""
    loan = loan_service.create_loan_request(current_user, request.get_json(silent=True) or {})
    return jsonify({'success': True, 'message': 'Loan request submitted successfully!',
                    'loan': loan.to_dict()}), 201


@loans_bp.route('/loans/all')
@login_required
def all_loans():
    """Every loan request - browsed by investors and the admin loan desk."""
    status = request.args.get('status', '')
    query = LoanRequest.query
    if status:
        query = query.filter_by(status=status)
    loans = query.order_by(LoanRequest.created_at.desc(), LoanRequest.id.desc()).all()
    return jsonify([loan.to_dict() for loan in loans])


@loans_bp.route('/loans/my')
@login_required
def my_loans():
    loans = current_user.loans.order_by(LoanRequest.created_at.desc()).all()
    return jsonify([loan.to_dict() for loan in loans])


@loans_bp.route('/loans/<int:loan_id>/approve', methods=['PATCH'])
@login_required
@admin_required
def approve_loan(loan_id):
    loan = loan_service.transition_loan(loan_id, 'approved')
    return jsonify({'success': True, 'loan': loan.to_dict()})


@loans_bp.route('/loans/<int:loan_id>/reject', methods=['PATCH'])
@login_required
@admin_required
def reject_loan(loan_id):
    data = request.get_json(silent=True) or {}
    loan = loan_service.transition_loan(loan_id, 'rejected', reason=data.get('reason'))
    return jsonify({'success': True, 'loan': loan.to_dict()})


@loans_bp.route('/loans/<int:loan_id>/disburse', methods=['PATCH'])
@login_required
@admin_required
def disburse_loan(loan_id):
    loan = loan_service.transition_loan(loan_id, 'disbursed')
    return jsonify({'success': True, 'loan': loan.to_dict()})


@loans_bp.route('/loans/<int:loan_id>/complete', methods=['PATCH'])
@login_required
@admin_required
def complete_loan(loan_id):
    loan = loan_service.transition_loan(loan_id, 'completed')
    return jsonify({'success': True, 'loan': loan.to_dict()})


@loans_bp.route('/investments', methods=['POST'])
@login_required
def invest():
    """Pay an investment amount towards a loan (simulated)."""
    data = request.get_json(silent=True) or {}
    try:
        loan_id = int(data.get('loanId'))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError('loanId is required')
    investment = loan_service.invest(current_user, loan_id, data.get('amount'))
    return jsonify({'success': True, 'investment': investment.to_dict()}), 201


@loans_bp.route('/investments/my')
@login_required
def my_investments():
    investments = current_user.investments.order_by(Investment.created_at.desc()).all()
    return jsonify({
        'success': True,
        'investments': [investment.to_dict() for investment in investments],
        'totalInvested': sum(investment.amount for investment in investments),
    })
