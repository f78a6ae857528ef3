"""
Clinic / doctor split of a consultation payment.

The clinic keeps 20% and the doctor earns 80%. Amounts are ``Decimal``;
the clinic's share is rounded to the cent with banker's rounding and the
doctor receives the remainder, so the two shares always add back up to the
amount exactly.
"""
from collections import namedtuple
from decimal import ROUND_HALF_EVEN, Decimal

CLINIC_TAX_RATE = Decimal('0.20')
DOCTOR_EARNING_RATE = Decimal('0.80')
CENT = Decimal('0.01')

PaymentSplit = namedtuple('PaymentSplit', ['clinic_tax', 'doctor_earning'])


def to_money(value):
    if not isinstance(value, Decimal):
        # str() first so floats like 0.1 keep their printed value
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def split(amount):
    amount = to_money(amount)
    clinic_tax = (amount * CLINIC_TAX_RATE).quantize(CENT, rounding=ROUND_HALF_EVEN)
    return PaymentSplit(clinic_tax=clinic_tax, doctor_earning=amount - clinic_tax)


def _get(payment, key):
    if isinstance(payment, dict):
        return payment.get(key)
    return getattr(payment, key)


def doctor_statistics(payments, doctor_name):
    """Earnings summary over a doctor's paid payments only."""
    paid = [p for p in payments
            if _get(p, 'doctor_name') == doctor_name and str(_get(p, 'status')) == 'paid']
    total = sum((to_money(_get(p, 'amount')) for p in paid), Decimal('0.00'))
    clinic_tax_total = sum((split(_get(p, 'amount')).clinic_tax for p in paid), Decimal('0.00'))
    return {
        'total_earnings': total,
        'clinic_tax_total': clinic_tax_total,
        'net_earnings': total - clinic_tax_total,
        'total_appointments': len(paid),
    }


def admin_statistics(payments):
    """Counts per status and the clinic's takings from paid payments."""
    payments = list(payments)
    paid = [p for p in payments if str(_get(p, 'status')) == 'paid']
    revenue = sum((to_money(_get(p, 'amount')) for p in paid), Decimal('0.00'))
    clinic_tax_total = sum((split(_get(p, 'amount')).clinic_tax for p in paid), Decimal('0.00'))
    return {
        'total': len(payments),
        'paid': len(paid),
        'pending': sum(1 for p in payments if str(_get(p, 'status')) == 'pending'),
        'failed': sum(1 for p in payments if str(_get(p, 'status')) == 'failed'),
        'total_revenue': revenue,
        'clinic_tax_total': clinic_tax_total,
        'doctor_earnings_total': revenue - clinic_tax_total,
    }
