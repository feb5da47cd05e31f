from jari_erp.services.backups import BACKUP_TABLES, build_backup_payload


def test_payload_covers_every_table(session, materials, wire_drawer):
    payload = build_backup_payload(session)

    assert set(BACKUP_TABLES) <= set(payload)
    assert {item["material_key"] for item in payload["items"]} == {"silver", "copper"}
    assert payload["machines"][0]["machine_type"] == "WIRE_DRAWING"
    assert payload["transactions"] == []


def test_backup_without_bucket_is_server_error(owner_client, monkeypatch):
    monkeypatch.setattr("jari_erp.services.backups.settings.S3_BUCKET", "")

    response = owner_client.post("/api/backups/run")

    assert response.status_code == 500
    assert "S3_BUCKET" in response.json()["detail"]
