# petbiz/api/catalog/test_services.py
import pytest

from petbiz.core.errors import ConflictError, NotFoundError, ValidationError


def _create(catalog_service, session, **overrides):
    payload = {"name": "General Checkup", "category": "consultation", "price": 300, "duration": "30 minutes"}
    payload.update(overrides)
    return catalog_service.create_service(session, payload)


def test_create_service_defaults(catalog_service, vet_session, store):
    service = _create(catalog_service, vet_session)

    assert service.user_id == "vet-1"
    assert service.business_type == "vet"
    assert service.is_active
    assert not service.is_emergency
    assert service.requires_appointment
    assert service.equipment_needed == []
    assert store.get('vet_services', service.service_id)['name'] == "General Checkup"


def test_create_service_validation(catalog_service, vet_session):
    with pytest.raises(ValidationError):
        _create(catalog_service, vet_session, price=-5)
    with pytest.raises(ValidationError):
        catalog_service.create_service(vet_session, {"name": "No price", "category": "misc"})


def test_service_names_are_unique_per_business(catalog_service, vet_session, other_vet_session):
    _create(catalog_service, vet_session)

    with pytest.raises(ConflictError):
        _create(catalog_service, vet_session, name="  general checkup ")

    # 다른 사업자는 같은 이름을 사용할 수 있음
    assert _create(catalog_service, other_vet_session).user_id == "vet-2"


def test_update_is_partial_and_checks_renames(catalog_service, vet_session, clock):
    checkup = _create(catalog_service, vet_session)
    _create(catalog_service, vet_session, name="Vaccination")
    clock.advance(days=1)

    updated = catalog_service.update_service(vet_session, checkup.service_id, {"price": 320})
    assert updated.price == 320
    assert updated.name == "General Checkup"
    assert updated.duration == "30 minutes"
    assert updated.updated_at == clock.current

    # 대소문자만 바꾸는 이름 변경은 허용
    assert catalog_service.update_service(
        vet_session, checkup.service_id, {"name": "General CHECKUP"}).name == "General CHECKUP"

    with pytest.raises(ConflictError):
        catalog_service.update_service(vet_session, checkup.service_id, {"name": "vaccination"})


def test_services_are_scoped_to_their_business(catalog_service, vet_session, other_vet_session):
    service = _create(catalog_service, vet_session)

    with pytest.raises(NotFoundError):
        catalog_service.get_service("vet-2", service.service_id)
    with pytest.raises(NotFoundError):
        catalog_service.update_service(other_vet_session, service.service_id, {"price": 1})
    assert catalog_service.toggle_active(other_vet_session, service.service_id) is None
    assert catalog_service.delete_service(other_vet_session, service.service_id) is False
    assert catalog_service.list_services(other_vet_session) == []


def test_toggle_active_flips_flag(catalog_service, vet_session):
    service = _create(catalog_service, vet_session)

    assert catalog_service.toggle_active(vet_session, service.service_id).is_active is False
    assert catalog_service.toggle_active(vet_session, service.service_id).is_active is True


def test_toggle_missing_service_returns_none(catalog_service, vet_session):
    assert catalog_service.toggle_active(vet_session, "missing") is None


def test_delete_service(catalog_service, vet_session, store):
    service = _create(catalog_service, vet_session)

    assert catalog_service.delete_service(vet_session, service.service_id) is True
    assert store.get('vet_services', service.service_id) is None
    assert catalog_service.delete_service(vet_session, service.service_id) is False


def test_list_active_hides_inactive_services(catalog_service, vet_session):
    surgery = _create(catalog_service, vet_session, name="Surgery", price=1500)
    _create(catalog_service, vet_session, name="Dental", price=400)
    catalog_service.toggle_active(vet_session, surgery.service_id)

    assert [s.name for s in catalog_service.list_active("vet-1")] == ["Dental"]
    assert len(catalog_service.list_services(vet_session)) == 2
