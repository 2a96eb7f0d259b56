"""
Payment ledger.
Derives the financial state of a booking (paid / remaining / status) and
persists it as rows in the payments table.

The most recently created row of a booking is authoritative; writes update
that row in place instead of appending history.
"""

from database import get_db
from utils.errors import ValidationError
from utils.validators import parse_amount, parse_date


PAYMENT_METHODS = ('CASH', 'CREDIT')
STATUS_COMPLETED = 'COMPLETED'
STATUS_PARTIALLY_PAID = 'PARTIALLY_PAID'


# =============================================================================
# CALCULATION
# =============================================================================

def calculate_payment(
    method: str,
    total_amount,
    paid_amount=None,
    remaining_due_date=None
) -> dict:
    """
    Derive the ledger values for a payment.

    CASH is always settled in full. CREDIT takes the paid amount (default 0)
    and requires a due date for any remaining balance.

    Args:
        method: 'CASH' or 'CREDIT' (case-insensitive, default CASH)
        total_amount: Booking total
        paid_amount: Amount already paid (CREDIT only)
        remaining_due_date: Due date for the outstanding balance (YYYY-MM-DD)

    Returns:
        dict: method, total_amount, paid_amount, remaining_amount,
              remaining_due_date, status

    Raises:
        ValidationError: Unknown method, paid out of range, or missing due date
    """
    method = (method or 'CASH').strip().upper()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f'Invalid payment method: {method}. Must be CASH or CREDIT')

    total = parse_amount(total_amount, 'total_amount')

    if method == 'CASH':
        return {
            'method': method,
            'total_amount': total,
            'paid_amount': total,
            'remaining_amount': 0.0,
            'remaining_due_date': None,
            'status': STATUS_COMPLETED
        }

    paid = 0.0 if paid_amount is None or paid_amount == '' else parse_amount(paid_amount, 'paid_amount')
    if paid > total:
        raise ValidationError('Paid amount cannot exceed total amount')

    remaining = round(total - paid, 2)
    due_date = None
    if remaining > 0:
        if not remaining_due_date:
            raise ValidationError('Due date is required for credit payments with remaining balance')
        due_date = parse_date(remaining_due_date, 'remaining_due_date').isoformat()

    return {
        'method': method,
        'total_amount': total,
        'paid_amount': paid,
        'remaining_amount': remaining,
        'remaining_due_date': due_date,
        'status': STATUS_COMPLETED if remaining == 0 else STATUS_PARTIALLY_PAID
    }


def merge_payment_data(existing: dict, payment_data: dict, total_amount) -> dict:
    """
    Recalculate a ledger from new payment data, keeping prior values for
    fields the caller omitted.

    Args:
        existing: Current payment row (or None)
        payment_data: Partial payment payload (method, paid_amount, remaining_due_date)
        total_amount: Booking total to settle against

    Returns:
        dict: Ledger as returned by calculate_payment
    """
    existing = existing or {}
    payment_data = payment_data or {}

    method = payment_data.get('method') or existing.get('method') or 'CASH'
    paid = payment_data.get('paid_amount', existing.get('paid_amount'))
    due_date = payment_data.get('remaining_due_date', existing.get('remaining_due_date'))

    return calculate_payment(method, total_amount, paid, due_date)


# =============================================================================
# PERSISTENCE
# =============================================================================

def get_latest_payment(booking_id: int, cursor=None) -> dict:
    """
    Get the authoritative payment row of a booking.

    Args:
        booking_id: Booking ID
        cursor: Active transaction cursor (optional)

    Returns:
        dict: Payment row or None
    """
    cur = cursor or get_db().cursor()
    cur.execute('''
        SELECT * FROM payments
        WHERE booking_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT 1
    ''', (booking_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def get_booking_payments(booking_id: int, cursor=None) -> list:
    """Get all payment rows of a booking, newest first."""
    cur = cursor or get_db().cursor()
    cur.execute('''
        SELECT * FROM payments
        WHERE booking_id = ?
        ORDER BY created_at DESC, id DESC
    ''', (booking_id,))
    return [dict(row) for row in cur.fetchall()]


def save_payment(cursor, booking_id: int, ledger: dict, payment_date: str = None) -> int:
    """
    Write a ledger to the booking's latest payment row, inserting one if
    the booking has none. Runs inside the caller's transaction.

    Args:
        cursor: Active transaction cursor
        booking_id: Booking ID
        ledger: Values from calculate_payment
        payment_date: Payment date (YYYY-MM-DD); kept from the row when None

    Returns:
        int: Payment row ID
    """
    existing = get_latest_payment(booking_id, cursor)

    if existing:
        cursor.execute('''
            UPDATE payments
            SET method = ?, total_amount = ?, paid_amount = ?, remaining_amount = ?,
                payment_date = COALESCE(?, payment_date), remaining_due_date = ?,
                status = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (
            ledger['method'], ledger['total_amount'], ledger['paid_amount'],
            ledger['remaining_amount'], payment_date, ledger['remaining_due_date'],
            ledger['status'], existing['id']
        ))
        return existing['id']

    cursor.execute('''
        INSERT INTO payments (
            booking_id, method, total_amount, paid_amount, remaining_amount,
            payment_date, remaining_due_date, status
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ''', (
        booking_id, ledger['method'], ledger['total_amount'], ledger['paid_amount'],
        ledger['remaining_amount'], payment_date, ledger['remaining_due_date'],
        ledger['status']
    ))
    return cursor.lastrowid


def delete_booking_payments(cursor, booking_id: int) -> int:
    """Delete every payment row of a booking. Returns the number of rows removed."""
    cursor.execute('DELETE FROM payments WHERE booking_id = ?', (booking_id,))
    return cursor.rowcount
