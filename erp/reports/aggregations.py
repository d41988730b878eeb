"""
Dashboard aggregations

Plain reductions over record dicts already fetched from the database.
Nothing here touches the ORM, so every figure can be computed for an
arbitrary ``today``.
"""
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal

from erp.sales.calculations import to_decimal

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

VALIDATED_STATUSES = ('validated', 'paid')
UNKNOWN_LABEL = 'Unknown'
TOP_LIMIT = 5

MONTHLY_CSV_HEADER = ['Month', 'Revenue', 'Expenses', 'Net', 'Margin %', 'Invoices']


def as_date(value):
    """Coerce a date, datetime or ISO string to a date (None stays None)"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()


def as_datetime(value):
    """Coerce to a datetime; plain dates become midnight UTC"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def money_float(value):
    return round(float(value), 3)


def percent_float(value):
    return round(float(value), 2)


def previous_month(today):
    """(year, month) of the month before ``today``; January rolls back to December"""
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def in_month(value, year, month):
    d = as_date(value)
    return d is not None and d.year == year and d.month == month


def growth(current, previous):
    """Percentage change from ``previous`` to ``current``, 0 when there is no base"""
    current, previous = to_decimal(current), to_decimal(previous)
    if previous == 0:
        return 0.0
    return percent_float((current - previous) / previous * 100)


def ratio_percent(part, whole):
    part, whole = to_decimal(part), to_decimal(whole)
    if whole == 0:
        return 0.0
    return percent_float(part / whole * 100)


def _sum(records, field):
    return sum((to_decimal(r.get(field)) for r in records), Decimal('0'))


def validated_invoices(invoices):
    return [inv for inv in invoices if inv.get('status') in VALIDATED_STATUSES]


# --- Revenue -----------------------------------------------------------------

def revenue_kpis(invoices, today):
    validated = validated_invoices(invoices)
    last_year, last_month = previous_month(today)

    month = _sum([i for i in validated if in_month(i.get('created_at'), today.year, today.month)], 'total')
    last = _sum([i for i in validated if in_month(i.get('created_at'), last_year, last_month)], 'total')
    unpaid = [i for i in invoices if i.get('status') == 'validated']

    return {
        'revenue_ttc': money_float(_sum(validated, 'total')),
        'revenue_ht': money_float(_sum(validated, 'subtotal')),
        'revenue_month': money_float(month),
        'revenue_last_month': money_float(last),
        'revenue_growth': growth(month, last),
        'unpaid_total': money_float(_sum(unpaid, 'total')),
        'unpaid_count': len(unpaid),
        'validated_count': len(validated),
    }


def expense_kpis(expenses, today):
    last_year, last_month = previous_month(today)
    month = _sum([e for e in expenses if in_month(e.get('expense_date'), today.year, today.month)], 'amount')
    last = _sum([e for e in expenses if in_month(e.get('expense_date'), last_year, last_month)], 'amount')

    return {
        'expenses_total': money_float(_sum(expenses, 'amount')),
        'expenses_month': money_float(month),
        'expenses_last_month': money_float(last),
        'expenses_growth': growth(month, last),
    }


def margin_kpis(revenue, expense):
    gross_margin = to_decimal(revenue['revenue_ttc']) - to_decimal(expense['expenses_total'])
    net_result = to_decimal(revenue['revenue_month']) - to_decimal(expense['expenses_month'])
    return {
        'gross_margin': money_float(gross_margin),
        'gross_margin_percent': ratio_percent(gross_margin, revenue['revenue_ttc']),
        'net_result': money_float(net_result),
    }


def average_basket(invoices):
    validated = validated_invoices(invoices)
    if not validated:
        return 0.0
    return money_float(_sum(validated, 'total') / len(validated))


def dso_days(invoices):
    """
    Days sales outstanding: mean delay between issue and payment of paid invoices.
    Payment moment is paid_at, falling back to the last update.
    """
    delays = []
    for inv in invoices:
        if inv.get('status') != 'paid':
            continue
        paid = as_datetime(inv.get('paid_at') or inv.get('updated_at'))
        issued = as_datetime(inv.get('issue_date'))
        if paid is None or issued is None:
            continue
        # Naive values are taken as UTC, like plain dates
        paid, issued = [d if d.tzinfo else d.replace(tzinfo=timezone.utc) for d in (paid, issued)]
        delays.append(max(0.0, (paid - issued).total_seconds() / 86400))
    if not delays:
        return 0.0
    return round(sum(delays) / len(delays), 1)


def overdue_invoices(invoices, today):
    """Validated invoices past their due date, most late first"""
    rows = []
    for inv in invoices:
        due = as_date(inv.get('due_date'))
        if inv.get('status') != 'validated' or due is None or due >= today:
            continue
        rows.append({
            'id': inv.get('id'),
            'number': inv.get('number'),
            'client_name': inv.get('client_name') or UNKNOWN_LABEL,
            'total': money_float(to_decimal(inv.get('total'))),
            'due_date': due.isoformat(),
            'days_late': (today - due).days,
        })
    rows.sort(key=lambda r: r['days_late'], reverse=True)
    return rows


def conversion_rate(invoices):
    if not invoices:
        return 0.0
    paid = sum(1 for inv in invoices if inv.get('status') == 'paid')
    return percent_float(Decimal(paid) / len(invoices) * 100)


# --- Rankings ----------------------------------------------------------------

def _rank(buckets, limit=TOP_LIMIT):
    ranked = sorted(buckets.items(), key=lambda kv: kv[1]['total'], reverse=True)[:limit]
    return [
        {'name': name, 'total': money_float(values['total']), 'count': values['count']}
        for name, values in ranked
    ]


def top_products(invoices, limit=TOP_LIMIT):
    """Best sellers by line revenue (quantity x unit price) over validated invoices"""
    buckets = defaultdict(lambda: {'total': Decimal('0'), 'count': Decimal('0')})
    for inv in validated_invoices(invoices):
        for item in inv.get('items') or []:
            quantity = to_decimal(item.get('quantity'))
            bucket = buckets[item.get('description') or UNKNOWN_LABEL]
            bucket['total'] += quantity * to_decimal(item.get('unit_price'))
            bucket['count'] += quantity
    ranked = _rank(buckets, limit)
    for row in ranked:
        count = row['count']
        row['count'] = float(count) if count != count.to_integral_value() else int(count)
    return ranked


def top_clients(invoices, limit=TOP_LIMIT):
    buckets = defaultdict(lambda: {'total': Decimal('0'), 'count': 0})
    for inv in validated_invoices(invoices):
        bucket = buckets[inv.get('client_name') or UNKNOWN_LABEL]
        bucket['total'] += to_decimal(inv.get('total'))
        bucket['count'] += 1
    return _rank(buckets, limit)


def top_suppliers(purchase_orders, limit=TOP_LIMIT):
    buckets = defaultdict(lambda: {'total': Decimal('0'), 'count': 0})
    for po in purchase_orders:
        bucket = buckets[po.get('supplier_name') or UNKNOWN_LABEL]
        bucket['total'] += to_decimal(po.get('total'))
        bucket['count'] += 1
    return _rank(buckets, limit)


def expenses_by_category(expenses):
    totals = defaultdict(lambda: Decimal('0'))
    for exp in expenses:
        totals[exp.get('category') or UNKNOWN_LABEL] += to_decimal(exp.get('amount'))
    return [
        {'category': category, 'total': money_float(total)}
        for category, total in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    ]


# --- Series ------------------------------------------------------------------

def monthly_series(invoices, expenses, year):
    """Twelve rows (Jan..Dec) of revenue, expenses, net, margin % and invoice count"""
    validated = validated_invoices(invoices)
    series = []
    for index, label in enumerate(MONTH_LABELS, start=1):
        month_invoices = [i for i in validated if in_month(i.get('created_at'), year, index)]
        revenue = _sum(month_invoices, 'total')
        spent = _sum([e for e in expenses if in_month(e.get('expense_date'), year, index)], 'amount')
        series.append({
            'month': label,
            'revenue': money_float(revenue),
            'expenses': money_float(spent),
            'net': money_float(revenue - spent),
            'margin': ratio_percent(revenue - spent, revenue),
            'invoices': len(month_invoices),
        })
    return series


def cash_flow_series(invoices, expenses, year):
    """Paid invoices (by creation month) against expenses for each month of ``year``"""
    paid = [i for i in invoices if i.get('status') == 'paid']
    series = []
    for index, label in enumerate(MONTH_LABELS, start=1):
        income = _sum([i for i in paid if in_month(i.get('created_at'), year, index)], 'total')
        spent = _sum([e for e in expenses if in_month(e.get('expense_date'), year, index)], 'amount')
        series.append({
            'month': label,
            'revenue': money_float(income),
            'expenses': money_float(spent),
            'net': money_float(income - spent),
        })
    return series


def monthly_csv_rows(series):
    """Render a monthly series as CSV rows, money with 3 decimals and margin with 2"""
    yield MONTHLY_CSV_HEADER
    for row in series:
        yield [
            row['month'],
            f"{row['revenue']:.3f}",
            f"{row['expenses']:.3f}",
            f"{row['net']:.3f}",
            f"{row['margin']:.2f}",
            row['invoices'],
        ]


# --- Assemblies --------------------------------------------------------------

def build_dashboard(invoices, expenses, purchase_orders, today):
    """All dashboard KPIs, rankings and series for ``today``"""
    revenue = revenue_kpis(invoices, today)
    expense = expense_kpis(expenses, today)
    overdue = overdue_invoices(invoices, today)

    kpis = {}
    kpis.update(revenue)
    kpis.update(expense)
    kpis.update(margin_kpis(revenue, expense))
    kpis.update({
        'average_basket': average_basket(invoices),
        'dso_days': dso_days(invoices),
        'overdue_count': len(overdue),
        'overdue_total': money_float(sum((to_decimal(r['total']) for r in overdue), Decimal('0'))),
        'conversion_rate': conversion_rate(invoices),
    })

    return {
        'kpis': kpis,
        'overdue_invoices': overdue[:6],
        'top_products': top_products(invoices),
        'top_clients': top_clients(invoices),
        'top_suppliers': top_suppliers(purchase_orders),
        'monthly': monthly_series(invoices, expenses, today.year),
        'expenses_by_category': expenses_by_category(expenses),
    }


def build_finance_summary(invoices, expenses, today):
    total_revenue = _sum([i for i in invoices if i.get('status') != 'cancelled'], 'total')
    paid_revenue = _sum([i for i in invoices if i.get('status') == 'paid'], 'total')
    month_expenses = _sum(
        [e for e in expenses if in_month(e.get('expense_date'), today.year, today.month)], 'amount'
    )
    total_expenses = _sum(expenses, 'amount')
    return {
        'total_revenue': money_float(total_revenue),
        'paid_revenue': money_float(paid_revenue),
        'total_expenses': money_float(total_expenses),
        'month_expenses': money_float(month_expenses),
        'net': money_float(paid_revenue - total_expenses),
        'cash_flow': cash_flow_series(invoices, expenses, today.year),
    }
