import csv
import io

CSV_HEADER = ['Date', 'Category', 'Description', 'Amount', 'Tags']


def export_expenses_csv(expenses):
    """One row per expense; tags joined with ';'"""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for expense in expenses:
        writer.writerow([
            expense.expense_date.isoformat(),
            expense.category,
            expense.description,
            f"{expense.amount:.3f}",
            ';'.join(expense.tags or []),
        ])
    return output.getvalue()
