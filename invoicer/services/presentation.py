from invoicer.billing.formatting import format_date, format_money
from invoicer.models.invoice import Invoice


def build_print_context(invoice: Invoice) -> dict:
    fees = invoice.fees or {}
    return {
        "title": invoice.invoice_title,
        "invoice_number": invoice.invoice_number,
        "status": invoice.status,
        "issue_date": format_date(invoice.issue_date),
        "due_date": format_date(invoice.due_date),
        "currency": invoice.currency,
        "company": invoice.company,
        "customer": invoice.customer,
        "line_items": [
            {
                "description": item.get("description", ""),
                "quantity": item.get("quantity", 0),
                "rate": format_money(item.get("rate")),
                "amount": format_money(item.get("amount")),
            }
            for item in invoice.line_items
        ],
        "subtotal": format_money(invoice.subtotal),
        "surcharge": format_money(invoice.surcharge) if fees.get("has_surcharge") else None,
        "surcharge_percent": fees.get("surcharge_percent") if fees.get("has_surcharge") else None,
        "convenience_fee": format_money(invoice.convenience_fee) if fees.get("has_convenience_fee") else None,
        "tax": "Free" if fees.get("is_tax_free") else format_money(invoice.tax),
        "tax_rate": fees.get("tax_rate", 0),
        "total": format_money(invoice.total),
        "notes": invoice.notes,
        "footer_message": invoice.footer_message,
    }
