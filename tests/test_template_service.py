import copy
from types import SimpleNamespace

import pytest

from database import upsert
from modules.common.errors import NotFoundError, ValidationFailedError
from modules.templates.models import ImmutableVersionError, Template, TemplateDraft, TemplateStatus, TemplateVersion
from modules.templates.services.template_service import TemplateService
from conftest import CONSENT_TEMPLATE


def payload(**changes):
    data = copy.deepcopy(CONSENT_TEMPLATE)
    data.update(changes)
    return data


def test_save_draft_creates_template_and_draft(db_session, org):
    result = TemplateService.save_draft(db_session, org.id, payload())

    assert result["status"] == "draft"
    assert "latestPublishedVersion" not in result
    template = db_session.get(Template, result["id"])
    assert template.org_id == org.id
    assert template.name == "Consent"
    assert template.draft.schema_json["fields"][0]["id"] == "name"
    assert db_session.query(TemplateVersion).count() == 0


def test_save_draft_twice_keeps_a_single_draft(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.save_draft(db_session, org.id, payload(name="Consent v2"), created["id"])

    db_session.expire_all()
    assert db_session.query(TemplateDraft).count() == 1
    draft = db_session.query(TemplateDraft).one()
    assert draft.schema_json["name"] == "Consent v2"
    assert db_session.get(Template, created["id"]).name == "Consent v2"


def test_save_draft_of_other_org_template_is_not_found(db_session, org, other_org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    with pytest.raises(NotFoundError):
        TemplateService.save_draft(db_session, other_org.id, payload(), created["id"])


def test_save_draft_reports_latest_published_version(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())

    result = TemplateService.save_draft(db_session, org.id, payload(name="Edited"), created["id"])
    assert result["status"] == "draft"
    assert result["latestPublishedVersion"] == 1


def test_invalid_payload_reports_every_issue(db_session, org):
    bad = {
        "name": "",
        "fields": [{"id": "choice", "type": "radio", "label": "Choice", "options": [{"id": "a", "label": "A"}]}],
    }
    with pytest.raises(ValidationFailedError) as excinfo:
        TemplateService.save_draft(db_session, org.id, bad)

    paths = [issue["path"] for issue in excinfo.value.issues]
    assert "name" in paths
    assert any(path.startswith("fields.0") and "options" in path for path in paths)
    assert db_session.query(Template).count() == 0


def test_unknown_field_type_is_rejected(db_session, org):
    bad = payload(fields=[{"id": "x", "type": "slider", "label": "X"}])
    with pytest.raises(ValidationFailedError):
        TemplateService.save_draft(db_session, org.id, bad)


def test_duplicate_field_ids_are_rejected(db_session, org):
    field = {"id": "name", "type": "text", "label": "Name"}
    with pytest.raises(ValidationFailedError):
        TemplateService.save_draft(db_session, org.id, payload(fields=[field, dict(field, label="Again")]))


def test_publish_same_payload_twice_is_idempotent(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())

    first, first_created = TemplateService.publish(db_session, org.id, created["id"], payload())
    second, second_created = TemplateService.publish(db_session, org.id, created["id"], payload())

    assert first_created is True
    assert second_created is False
    assert first.version == second.version == 1
    assert db_session.query(TemplateVersion).count() == 1
    assert db_session.get(Template, created["id"]).status == TemplateStatus.PUBLISHED


def test_publish_with_reordered_keys_is_still_a_noop(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())

    reordered = {"fields": [{"label": "Name", "required": True, "type": "text", "id": "name"}], "name": "Consent"}
    version, was_created = TemplateService.publish(db_session, org.id, created["id"], reordered)
    assert was_created is False
    assert version.version == 1


def test_changed_payload_creates_dense_versions(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())
    v2, _ = TemplateService.publish(db_session, org.id, created["id"], payload(name="Consent 2"))
    v3, _ = TemplateService.publish(db_session, org.id, created["id"], payload(name="Consent 3"))

    versions = [v.version for v in db_session.query(TemplateVersion).order_by(TemplateVersion.version)]
    assert versions == [1, 2, 3]
    assert v2.version == 2 and v3.version == 3
    assert db_session.get(Template, created["id"]).name == "Consent 3"


def test_republishing_older_content_creates_a_new_version(db_session, org):
    # Only the latest version is compared, so going back to v1 content makes v3
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())
    TemplateService.publish(db_session, org.id, created["id"], payload(name="Other"))
    v3, was_created = TemplateService.publish(db_session, org.id, created["id"], payload())
    assert was_created is True
    assert v3.version == 3


def test_publish_after_draft_save_restores_published_status(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())
    TemplateService.save_draft(db_session, org.id, payload(), created["id"])
    assert db_session.get(Template, created["id"]).status == TemplateStatus.DRAFT

    _, was_created = TemplateService.publish(db_session, org.id, created["id"], payload())
    db_session.expire_all()
    assert was_created is False
    assert db_session.get(Template, created["id"]).status == TemplateStatus.PUBLISHED


def test_publish_unknown_or_foreign_template_is_not_found(db_session, org, other_org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    with pytest.raises(NotFoundError):
        TemplateService.publish(db_session, org.id, 9999, payload())
    with pytest.raises(NotFoundError):
        TemplateService.publish(db_session, other_org.id, created["id"], payload())


def test_published_version_cannot_be_modified(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    version, _ = TemplateService.publish(db_session, org.id, created["id"], payload())

    version.checksum = "0" * 64
    with pytest.raises(ImmutableVersionError):
        db_session.commit()
    db_session.rollback()


def test_list_templates_with_filters_and_versions(db_session, org, other_org):
    published = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, published["id"], payload())
    TemplateService.publish(db_session, org.id, published["id"], payload(name="Consent 2"))
    TemplateService.save_draft(db_session, org.id, payload(name="Only draft"))
    TemplateService.save_draft(db_session, other_org.id, payload(name="Foreign"))

    everything = TemplateService.list_templates(db_session, org.id)
    assert {t["name"] for t in everything} == {"Consent 2", "Only draft"}
    assert all("versions" not in t for t in everything)

    only_published = TemplateService.list_templates(
        db_session, org.id, status=TemplateStatus.PUBLISHED, include_versions=True
    )
    assert len(only_published) == 1
    item = only_published[0]
    assert item["latestPublished"]["version"] == 2
    assert [v["version"] for v in item["versions"]] == [2, 1]
    assert item["draft"]["schema"]["name"] == "Consent"


def test_archive_template(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    template = TemplateService.archive(db_session, org.id, created["id"])
    assert template.status == TemplateStatus.ARCHIVED


def test_draft_upsert_rejects_unsupported_dialect():
    mysql_session = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="mysql")))
    with pytest.raises(ValueError, match="mysql"):
        upsert(
            mysql_session,
            TemplateDraft,
            values={"template_id": 1, "schema_json": {}, "checksum": "x"},
            index_elements=["template_id"],
            update_fields=["schema_json", "checksum"],
        )


def test_listed_timestamps_carry_utc_offset(db_session, org):
    created = TemplateService.save_draft(db_session, org.id, payload())
    TemplateService.publish(db_session, org.id, created["id"], payload())

    (item,) = TemplateService.list_templates(db_session, org.id)
    assert item["updatedAt"].endswith("+00:00")
    assert item["latestPublished"]["publishedAt"].endswith("+00:00")
