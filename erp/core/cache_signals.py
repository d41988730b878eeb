"""
Cache invalidation signals
Drop cached dashboard/report payloads when the records they aggregate change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.core.cache import cache
import logging
import threading
from contextlib import contextmanager
from functools import wraps

logger = logging.getLogger(__name__)

DASHBOARD_CACHE_PREFIX = 'dashboard_kpis'

# Models whose changes make the dashboard stale
DASHBOARD_SOURCES = [
    'sales.Invoice',
    'sales.InvoiceItem',
    'sales.Payment',
    'expenses.Expense',
    'purchasing.PurchaseOrder',
    'production.ProductionJob',
    'parties.Client',
    'catalog.Product',
]

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals.
    Used around bulk writes (document + its items); callers invalidate once afterwards.
    """
    previous = is_suspended()
    _thread_locals.suspended = True
    try:
        yield
    finally:
        _thread_locals.suspended = previous


def suspend_cache_signals_decorator(func):
    """Decorator version of suspend_cache_signals"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        with suspend_cache_signals():
            return func(*args, **kwargs)
    return wrapper


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.
    The redis backend supports pattern deletes; other backends are cleared.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Cache invalidation for pattern: {pattern} - Deleted {deleted} keys")
        else:
            cache.clear()
            logger.info(f"Cache invalidation for pattern: {pattern} - Cleared local cache")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_dashboard_cache():
    invalidate_cache_pattern(DASHBOARD_CACHE_PREFIX)


def dashboard_cache_key(today):
    return f"{DASHBOARD_CACHE_PREFIX}:{today.isoformat()}"


# --- Signal Handlers ---

def _on_dashboard_source_change(sender, instance, **kwargs):
    if is_suspended():
        return
    logger.debug(f"{sender.__name__} {instance.pk} changed, invalidating dashboard cache")
    invalidate_dashboard_cache()


for _source in DASHBOARD_SOURCES:
    receiver(post_save, sender=_source, dispatch_uid=f'dashboard_save_{_source}')(_on_dashboard_source_change)
    receiver(post_delete, sender=_source, dispatch_uid=f'dashboard_delete_{_source}')(_on_dashboard_source_change)
