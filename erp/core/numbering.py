"""
Document numbering backed by the CompanySettings sequences.

Numbers look like ``FAC-00042``: the configured prefix, a dash and the
sequence zero-padded to five digits.
"""
import logging
import re

from django.db import transaction

from .models import CompanySettings

logger = logging.getLogger(__name__)

SEQUENCE_PADDING = 5
TRAILING_DIGITS = re.compile(r'-(\d+)$')


def format_number(prefix, sequence):
    return f"{prefix}-{str(sequence).zfill(SEQUENCE_PADDING)}"


def _fields_for(kind):
    try:
        return CompanySettings.SEQUENCE_FIELDS[kind]
    except KeyError:
        raise ValueError(f"Unknown document kind: {kind}")


def peek_document_number(kind):
    """Number the next document of this kind would get, without reserving it"""
    prefix_field, seq_field = _fields_for(kind)
    settings_obj = CompanySettings.load()
    return format_number(getattr(settings_obj, prefix_field), getattr(settings_obj, seq_field))


def next_document_number(kind, exists=None):
    """
    Reserve and return the next number for a document kind.

    Args:
        kind: One of CompanySettings.SEQUENCE_FIELDS ('invoice', 'quote', ...)
        exists: Optional callable(number) -> bool; numbers already taken
            (e.g. typed by hand earlier) are skipped.
    """
    prefix_field, seq_field = _fields_for(kind)
    with transaction.atomic():
        settings_obj = CompanySettings.load_for_update()
        prefix = getattr(settings_obj, prefix_field)
        sequence = getattr(settings_obj, seq_field)
        number = format_number(prefix, sequence)
        while exists is not None and exists(number):
            sequence += 1
            number = format_number(prefix, sequence)
        setattr(settings_obj, seq_field, sequence + 1)
        settings_obj.save(update_fields=[seq_field, 'updated_at'])
    logger.debug(f"Reserved {kind} number {number}")
    return number


def register_used_number(kind, number):
    """
    Move the sequence past a number chosen by the user.

    Only numbers ending in ``-<digits>`` affect the sequence; the new value
    is ``max(current, used) + 1``.
    """
    _, seq_field = _fields_for(kind)
    match = TRAILING_DIGITS.search(number or '')
    if not match:
        return None
    used = int(match.group(1))
    with transaction.atomic():
        settings_obj = CompanySettings.load_for_update()
        current = getattr(settings_obj, seq_field)
        new_seq = used + 1 if used >= current else current
        if new_seq != current:
            setattr(settings_obj, seq_field, new_seq)
            settings_obj.save(update_fields=[seq_field, 'updated_at'])
    return new_seq
