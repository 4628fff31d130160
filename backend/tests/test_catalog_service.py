import pytest

from snspos.models import Item
from snspos.services import catalog_service
from snspos.validation import ConflictError, NotFoundError, ValidationError


def test_create_item_group(db_session):
    group = catalog_service.create_item_group(patch={"name": "MEN'S WEAR", "code": "MW"})

    assert group.id
    assert catalog_service.get_item_group(group.id).code == "MW"


def test_create_item_group_requires_name_and_code(db_session):
    with pytest.raises(ValidationError):
        catalog_service.create_item_group(patch={"name": "MEN'S WEAR"})


def test_duplicate_group_name_is_refused(db_session, polo_group):
    with pytest.raises(ConflictError, match="name already exists"):
        catalog_service.create_item_group(patch={"name": polo_group.name, "code": "OTHER"})


def test_duplicate_group_code_is_refused(db_session, polo_group):
    with pytest.raises(ConflictError, match="code already exists"):
        catalog_service.create_item_group(patch={"name": "Something else", "code": "BPS"})


def test_update_group_to_its_own_values_is_allowed(db_session, polo_group):
    group = catalog_service.update_item_group(polo_group.id, patch={"name": polo_group.name})
    assert group.name == "BOY'S POLO SHIRT"


def test_update_group_to_taken_code_is_refused(db_session, polo_group, pants_group):
    with pytest.raises(ConflictError):
        catalog_service.update_item_group(pants_group.id, patch={"code": "BPS"})


def test_update_unknown_group(db_session):
    with pytest.raises(NotFoundError):
        catalog_service.update_item_group("missing", patch={"name": "X"})


def test_delete_group_in_use_is_refused(db_session, polo_group, polo_item):
    with pytest.raises(ConflictError, match="being used"):
        catalog_service.delete_item_group(polo_group.id)

    assert catalog_service.get_item_group(polo_group.id) is not None


def test_delete_unused_group(db_session, pants_group):
    catalog_service.delete_item_group(pants_group.id)

    with pytest.raises(NotFoundError):
        catalog_service.get_item_group(pants_group.id)


def test_create_item_copies_group_name(db_session, pants_group):
    item = catalog_service.create_item(patch={"item_code": "BTS140", "item_group_id": pants_group.id})

    assert item.name == "BOY'S SHORT PANT"
    assert item.to_dict()["groupCode"] == "BSP"


def test_item_name_does_not_follow_group_rename(db_session, polo_group, polo_item):
    catalog_service.update_item_group(polo_group.id, patch={"name": "POLO"})

    assert db_session.get(Item, polo_item.row_id).name == "BOY'S POLO SHIRT"


def test_duplicate_item_code_is_refused(db_session, polo_group, polo_item):
    with pytest.raises(ConflictError, match="BPS30"):
        catalog_service.create_item(patch={"item_code": "BPS30", "item_group_id": polo_group.id})


def test_create_item_with_unknown_group(db_session):
    with pytest.raises(NotFoundError):
        catalog_service.create_item(patch={"item_code": "X1", "item_group_id": "nope"})


def test_list_items_searches_group_code(db_session, polo_item, pants_group):
    catalog_service.create_item(patch={"item_code": "BTS140", "item_group_id": pants_group.id})

    result = catalog_service.list_items(search="bsp")

    assert [i["item_code"] for i in result["items"]] == ["BTS140"]
    assert result["pagination"]["total"] == 1
