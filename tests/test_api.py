"""HTTP surface through FastAPI's TestClient on the memory backend."""

import re

import pytest

API = "/api/v1"


def _payload(**overrides):
    body = {
        "date": "2024-01-15",
        "fournisseurId": "1",
        "observations": "Commande urgente",
        "articles": [
            {"articleId": "1", "quantite": 2, "prixUnitaire": 5000},
            {"articleId": "2", "quantite": 1, "prixUnitaire": 15000},
        ],
    }
    body.update(overrides)
    return body


def _create(client, **overrides) -> dict:
    response = client.post(f"{API}/approvisionnements", json=_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["backend"] == "memory"


class TestProcurements:
    def test_create_returns_wire_names(self, client):
        record = _create(client)

        assert re.fullmatch(r"APP-\d{6}-001", record["reference"])
        assert record["montantTotal"] == 25000
        assert record["statut"] == "En attente"
        assert record["fournisseur"] == "Textiles Dakar SARL"
        assert record["articles"][0]["montant"] == 10000
        assert record["createdAt"] == record["updatedAt"]

    def test_validation_error_body(self, client):
        response = client.post(f"{API}/approvisionnements", json={"articles": []})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {"date", "fournisseurId", "articles"} <= set(error["fields"])
        assert client.get(f"{API}/approvisionnements").json()["meta"]["total"] == 0

    def test_unpadded_date_is_rejected(self, client):
        response = client.post(f"{API}/approvisionnements", json=_payload(date="2024-1-5"))
        assert response.status_code == 422
        assert "date" in response.json()["error"]["fields"]

    def test_not_found_body(self, client):
        response = client.get(f"{API}/approvisionnements/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_conflict_on_fixed_reference(self, client):
        _create(client, reference="APP-202401-005")
        response = client.post(
            f"{API}/approvisionnements", json=_payload(reference="APP-202401-005")
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_list_is_filtered_then_paginated(self, client):
        for _ in range(7):
            _create(client)
        _create(client, fournisseurId="2")

        response = client.get(
            f"{API}/approvisionnements", params={"supplierId": "1", "page": 2, "limit": 5}
        )
        body = response.json()

        assert response.status_code == 200
        assert len(body["data"]) == 2
        assert body["meta"] == {
            "total": 7,
            "page": 2,
            "limit": 5,
            "pages": 2,
            "pageNumbers": [1, 2],
            "hasPrevious": True,
            "hasNext": False,
            "firstItem": 6,
            "lastItem": 7,
        }

    def test_out_of_range_page_is_clamped(self, client):
        _create(client)
        meta = client.get(f"{API}/approvisionnements", params={"page": 9}).json()["meta"]
        assert meta["page"] == 1

    def test_empty_list(self, client):
        body = client.get(f"{API}/approvisionnements").json()
        assert body["data"] == []
        assert body["meta"]["pages"] == 0
        assert body["meta"]["page"] == 1

    def test_invalid_date_filter_is_rejected(self, client):
        response = client.get(f"{API}/approvisionnements", params={"dateFrom": "01/01/2024"})
        assert response.status_code == 422

    def test_export_csv(self, client):
        record = _create(client)
        response = client.get(f"{API}/approvisionnements/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0] == "Référence,Date,Fournisseur,Montant Total,Statut"
        assert lines[1] == f"{record['reference']},2024-01-15,Textiles Dakar SARL,25000,En attente"

    def test_status_change_and_receive(self, client):
        record = _create(client)
        url = f"{API}/approvisionnements/{record['id']}"

        cancelled = client.patch(f"{url}/status", json={"statut": "Annulé"}).json()["data"]
        assert cancelled["statut"] == "Annulé"
        assert cancelled["articles"] == record["articles"]

        received = client.post(f"{url}/receive").json()["data"]
        assert received["statut"] == "Reçu"

    def test_unknown_status_is_rejected(self, client):
        record = _create(client)
        response = client.patch(
            f"{API}/approvisionnements/{record['id']}/status", json={"statut": "Perdu"}
        )
        assert response.status_code == 422

    def test_update(self, client):
        record = _create(client)
        response = client.patch(
            f"{API}/approvisionnements/{record['id']}", json={"observations": "Livré"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["observations"] == "Livré"

    def test_put_is_not_routed(self, client):
        record = _create(client)
        response = client.put(
            f"{API}/approvisionnements/{record['id']}", json={"observations": "Livré"}
        )
        assert response.status_code == 405
        assert client.put(f"{API}/fournisseurs/1", json={"nom": "X"}).status_code == 405
        assert client.put(f"{API}/articles/1", json={"nom": "X"}).status_code == 405

    def test_delete_and_delete_by_reference(self, client):
        first = _create(client)
        second = _create(client)

        assert client.delete(f"{API}/approvisionnements/{first['id']}").status_code == 204
        assert client.get(f"{API}/approvisionnements/{first['id']}").status_code == 404

        url = f"{API}/approvisionnements/by-reference/{second['reference']}"
        assert client.delete(url).status_code == 204
        assert client.delete(url).status_code == 404

    def test_references_and_stats(self, client):
        next_ref = client.get(f"{API}/approvisionnements/next-reference").json()["data"]["reference"]
        record = _create(client)
        assert record["reference"] == next_ref

        check = client.get(
            f"{API}/approvisionnements/reference-exists", params={"reference": next_ref}
        ).json()["data"]
        assert check == {"reference": next_ref, "exists": True}

        stats = client.get(f"{API}/approvisionnements/stats").json()["data"]
        assert stats["totalMontant"] == 25000
        assert stats["nombreApprovisionnements"] == 1
        assert stats["fournisseurPrincipal"]["nom"] == "Textiles Dakar SARL"

    def test_draft_preview(self, client):
        response = client.post(
            f"{API}/approvisionnements/draft",
            json={"articles": [{"articleId": "1", "quantite": 1}, {"articleId": "1", "quantite": 2}]},
        )
        data = response.json()["data"]
        assert data["montantTotal"] == 15000
        assert len(data["articles"]) == 1


class TestCatalog:
    def test_supplier_crud(self, client):
        created = client.post(f"{API}/fournisseurs", json={"nom": "Atelier Thiès"})
        assert created.status_code == 201
        supplier_id = created.json()["data"]["id"]

        updated = client.patch(f"{API}/fournisseurs/{supplier_id}", json={"contact": "77 000 00 00"})
        assert updated.json()["data"] == {
            "id": supplier_id,
            "nom": "Atelier Thiès",
            "contact": "77 000 00 00",
            "email": None,
            "adresse": None,
        }

        assert client.delete(f"{API}/fournisseurs/{supplier_id}").status_code == 204
        assert client.get(f"{API}/fournisseurs/{supplier_id}").status_code == 404

    def test_supplier_name_required(self, client):
        assert client.post(f"{API}/fournisseurs", json={"nom": ""}).status_code == 422

    @pytest.mark.parametrize("search, expected", [("soie", ["Soie naturelle"]), ("zzz", [])])
    def test_article_search(self, client, search, expected):
        response = client.get(f"{API}/articles", params={"search": search})
        assert [a["nom"] for a in response.json()["data"]] == expected

    def test_article_lifecycle(self, client):
        created = client.post(
            f"{API}/articles", json={"nom": "Toile de jute", "prixReference": 2500, "unite": "m"}
        ).json()["data"]
        assert created["prixReference"] == 2500

        fetched = client.get(f"{API}/articles/{created['id']}").json()["data"]
        assert fetched["unite"] == "m"

        assert client.delete(f"{API}/articles/{created['id']}").status_code == 204
        assert client.delete(f"{API}/articles/{created['id']}").status_code == 404
