"""CSV export of procurement lists.

Fields are comma-joined as-is: no quoting or escaping, so a supplier name
containing a comma shifts the columns of its row.
"""


from collections.abc import Iterable

from appro.schemas.procurement import ProcurementOut

CSV_HEADER = "Référence,Date,Fournisseur,Montant Total,Statut"


def _amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def export_csv(records: Iterable[ProcurementOut]) -> str:
    """One row per record, in the given (display) order, after the header row."""
    rows = [CSV_HEADER]
    for record in records:
        rows.append(
            ",".join(
                [
                    record.reference,
                    record.date,
                    record.supplier_name or "",
                    _amount(record.total_amount),
                    record.status.value,
                ]
            )
        )
    return "\n".join(rows) + "\n"
