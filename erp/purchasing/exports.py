"""
TEJ withholding-tax declaration exports.

TEJ is the Tunisian tax platform where monthly "retenue a la source" on
supplier purchases is declared, either as CSV or as XML.
"""
import csv
import io
import re
import xml.etree.ElementTree as ET

from erp.sales.calculations import money

TAX_ID_PATTERN = re.compile(r'^\d{7}[A-Za-z]$')

CSV_HEADER = ['Numero', 'Date', 'Fournisseur', 'MF Fournisseur', 'Montant TTC', 'Retenue Source']


def validate_company_for_tej(company):
    """
    Check the company identity required on a TEJ declaration.

    Returns:
        dict mapping field name to error message; empty when valid
    """
    errors = {}
    if not (company.company_name or '').strip():
        errors['company_name'] = 'Company name is required'
    if not TAX_ID_PATTERN.match((company.company_tax_id or '').strip()):
        errors['company_tax_id'] = 'Company tax id is invalid (7 digits followed by 1 letter)'
    if not (company.company_email or '').strip():
        errors['company_email'] = 'Company email is required'
    if not (company.company_phone or '').strip():
        errors['company_phone'] = 'Company phone is required'
    return errors


def tej_rows(purchase_orders):
    """Flatten purchase orders into declaration rows"""
    rows = []
    for po in purchase_orders:
        supplier = po.supplier
        rows.append({
            'number': po.number,
            'date': po.order_date.isoformat(),
            'supplier_name': supplier.name if supplier else '',
            'supplier_tax_id': supplier.tax_id if supplier else '',
            'total': money(po.total),
            'retenue_source': money(po.retenue_source),
        })
    return rows


def export_tej_csv(rows):
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([
            row['number'],
            row['date'],
            row['supplier_name'],
            row['supplier_tax_id'],
            f"{row['total']:.3f}",
            f"{row['retenue_source']:.3f}",
        ])
    return output.getvalue()


def export_tej_xml(rows):
    root = ET.Element('DeclarationTEJ')
    purchases = ET.SubElement(root, 'Achats')
    for row in rows:
        purchase = ET.SubElement(purchases, 'Achat')
        ET.SubElement(purchase, 'Numero').text = row['number']
        ET.SubElement(purchase, 'Date').text = row['date']
        ET.SubElement(purchase, 'Fournisseur').text = row['supplier_name']
        ET.SubElement(purchase, 'MF').text = row['supplier_tax_id']
        ET.SubElement(purchase, 'MontantTTC').text = f"{row['total']:.3f}"
        ET.SubElement(purchase, 'RetenueSource').text = f"{row['retenue_source']:.3f}"
    ET.indent(root, space='  ')
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding='unicode')
