"""
Document arithmetic shared by invoices, quotes and purchase orders.

All amounts are Decimal and rounded to the millime (3 places).
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

MONEY_PLACES = Decimal('0.001')
PERCENT_PLACES = Decimal('0.01')
HUNDRED = Decimal('100')
ZERO = Decimal('0')


def to_decimal(value, default=ZERO):
    """Coerce numbers, numeric strings and None to Decimal"""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def money(value):
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def percent(value):
    return to_decimal(value).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def line_subtotal(quantity, unit_price):
    """Amount before tax for one line"""
    return to_decimal(quantity) * to_decimal(unit_price)


def line_total(quantity, unit_price, tva_rate):
    """Amount including tax for one line: qty x price x (1 + tva/100)"""
    return money(line_subtotal(quantity, unit_price) * (1 + to_decimal(tva_rate) / HUNDRED))


def compute_totals(items, discount_percent=0, fodec_rate=0, timbre=0):
    """
    Compute document totals from its lines.

    Args:
        items: iterable of objects or dicts with quantity, unit_price, tva_rate
        discount_percent: global discount applied to every line before tax
        fodec_rate: FODEC percentage applied to the discounted subtotal
        timbre: fixed stamp duty added to the total

    Returns:
        dict with subtotal, discount_amount, tva_amount, fodec_amount, total
    """
    discount_ratio = to_decimal(discount_percent) / HUNDRED
    subtotal = ZERO
    tva = ZERO
    for item in items:
        amount = line_subtotal(_field(item, 'quantity'), _field(item, 'unit_price'))
        subtotal += amount
        tva += (amount - amount * discount_ratio) * to_decimal(_field(item, 'tva_rate')) / HUNDRED

    subtotal = money(subtotal)
    discount_amount = money(subtotal * discount_ratio)
    tva_amount = money(tva)
    fodec_amount = money((subtotal - discount_amount) * to_decimal(fodec_rate) / HUNDRED)
    timbre_amount = money(timbre)
    total = subtotal - discount_amount + tva_amount + fodec_amount + timbre_amount

    return {
        'subtotal': subtotal,
        'discount_amount': discount_amount,
        'tva_amount': tva_amount,
        'fodec_amount': fodec_amount,
        'total': money(total),
    }


def withholding_tax(total, threshold=Decimal('1000'), rate=Decimal('1')):
    """Retenue a la source: rate % of the total once it reaches the threshold"""
    total = to_decimal(total)
    if total < threshold:
        return money(ZERO)
    return money(total * rate / HUNDRED)
