"""CSV export."""

from appro.domain.procurement import ProcurementStatus
from appro.services.export import CSV_HEADER, export_csv

from tests.factories import make_record


def test_header_only_for_empty_list():
    assert export_csv([]) == CSV_HEADER + "\n"
    assert CSV_HEADER == "Référence,Date,Fournisseur,Montant Total,Statut"


def test_rows_in_given_order():
    records = [
        make_record(2, date="2024-01-12", supplier_name="Mercerie Centrale", total=3000),
        make_record(1, date="2024-01-05", total=1250.5, status=ProcurementStatus.RECEIVED),
    ]
    lines = export_csv(records).splitlines()
    assert lines == [
        CSV_HEADER,
        "APP-202401-002,2024-01-12,Mercerie Centrale,3000,En attente",
        "APP-202401-001,2024-01-05,Textiles Dakar SARL,1250.5,Reçu",
    ]


def test_commas_are_not_escaped():
    record = make_record(1, supplier_name="Dupont, Fils")
    row = export_csv([record]).splitlines()[1]
    assert row.split(",") == ["APP-202401-001", "2024-01-10", "Dupont", " Fils", "1000", "En attente"]
