"""Spell out dinar amounts in French, as printed under invoice totals"""
from decimal import Decimal, ROUND_HALF_UP

from .calculations import to_decimal

UNITS = ['', 'un', 'deux', 'trois', 'quatre', 'cinq', 'six', 'sept', 'huit', 'neuf']
TEENS = ['dix', 'onze', 'douze', 'treize', 'quatorze', 'quinze', 'seize', 'dix-sept', 'dix-huit', 'dix-neuf']
TENS = ['', '', 'vingt', 'trente', 'quarante', 'cinquante', 'soixante']


def _below_hundred(n):
    if n < 10:
        return UNITS[n]
    if n < 20:
        return TEENS[n - 10]
    if n < 70:
        ten, unit = divmod(n, 10)
        if unit == 0:
            return TENS[ten]
        if unit == 1:
            return f"{TENS[ten]} et un"
        return f"{TENS[ten]}-{UNITS[unit]}"
    if n == 71:
        return 'soixante et onze'
    if n < 80:
        return 'soixante-' + _below_hundred(n - 60)
    if n == 80:
        return 'quatre-vingts'
    return 'quatre-vingt-' + _below_hundred(n - 80)


def _below_thousand(n, plural_hundreds=True):
    """0 < n < 1000; ``plural_hundreds`` is False before 'mille'"""
    hundred, remainder = divmod(n, 100)
    if hundred == 0:
        words = _below_hundred(remainder)
    else:
        words = 'cent' if hundred == 1 else f"{UNITS[hundred]} cent"
        if remainder:
            words = f"{words} {_below_hundred(remainder)}"
        elif hundred > 1:
            words += 's'
    # "deux cent mille", "quatre-vingt mille"
    if not plural_hundreds and words.endswith(('cents', 'vingts')):
        words = words[:-1]
    return words


def integer_to_french(n):
    if n == 0:
        return 'zéro'
    parts = []
    millions, rest = divmod(n, 1000000)
    thousands, units = divmod(rest, 1000)
    if millions:
        if millions == 1:
            parts.append('un million')
        else:
            parts.append(f"{integer_to_french(millions)} millions")
    if thousands:
        parts.append('mille' if thousands == 1 else f"{_below_thousand(thousands, plural_hundreds=False)} mille")
    if units:
        parts.append(_below_thousand(units))
    return ' '.join(parts)


def amount_to_french_words(amount):
    """
    >>> amount_to_french_words(Decimal('1250.500'))
    'Mille deux cent cinquante dinars et cinq cents millimes'
    """
    amount = abs(to_decimal(amount)).quantize(Decimal('0.001'), rounding=ROUND_HALF_UP)
    dinars = int(amount)
    millimes = int((amount - dinars) * 1000)

    if dinars == 0 and millimes == 0:
        return 'Zéro dinar'

    words = ''
    if dinars == 1:
        words = 'un dinar'
    elif dinars:
        words = f"{integer_to_french(dinars)} dinars"

    if millimes:
        if words:
            words += ' et '
        words += f"{integer_to_french(millimes)} millime{'s' if millimes > 1 else ''}"

    return words[0].upper() + words[1:]
