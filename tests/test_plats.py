import uuid
from decimal import Decimal

import pytest

from models.plat import Plat
from models.promotion import Promotion
from services import plats as plat_service
from utils.errors import NotFound, Forbidden, InvalidArgument


class TestCreatePlat:
    def test_chef_creates_with_ingredients(self, db, chef):
        plat = plat_service.create_plat(db, chef, {
            "name": "Lasagne", "price": "13.90",
            "ingredients": [{"name": "Parmesan", "price": "1.00", "is_free": False}, {"name": "Basil"}],
        })

        assert plat.chef_id == chef.id
        assert plat.price == Decimal("13.90")
        prices = {i.name: i.price for i in plat.ingredients}
        assert prices == {"Parmesan": Decimal("1.00"), "Basil": Decimal("0")}

    def test_customer_cannot_create(self, db, customer):
        with pytest.raises(Forbidden):
            plat_service.create_plat(db, customer, {"name": "X", "price": "1"})

    @pytest.mark.parametrize("data", [{"name": "X", "price": "-0.01"}, {"name": "  ", "price": "1"}])
    def test_invalid_data(self, db, chef, data):
        with pytest.raises(InvalidArgument):
            plat_service.create_plat(db, chef, data)

    def test_admin_publishes_for_a_chef(self, db, admin, chef):
        plat = plat_service.create_plat(db, admin, {"name": "Soup", "price": "4", "chef_id": chef.id})
        assert plat.chef_id == chef.id

    def test_admin_cannot_publish_for_a_customer(self, db, admin, customer):
        with pytest.raises(NotFound):
            plat_service.create_plat(db, admin, {"name": "Soup", "price": "4", "chef_id": customer.id})

    def test_chef_cannot_publish_for_another_chef(self, db, chef, make_user):
        other = make_user("chef")
        with pytest.raises(Forbidden):
            plat_service.create_plat(db, chef, {"name": "Soup", "price": "4", "chef_id": other.id})


class TestUpdateAndDelete:
    def test_partial_update(self, db, chef, make_plat):
        plat = make_plat(chef, price="10.00", ingredients=[("Olives", "0")])

        updated = plat_service.update_plat(db, chef, plat.id, {"price": "12.00"})

        assert updated.price == Decimal("12.00")
        assert [i.name for i in updated.ingredients] == ["Olives"]

    def test_ingredients_are_replaced(self, db, chef, make_plat):
        plat = make_plat(chef, ingredients=[("Olives", "0")])

        updated = plat_service.update_plat(db, chef, plat.id, {"ingredients": [{"name": "Feta", "price": "2", "is_free": False}]})

        assert [i.name for i in updated.ingredients] == ["Feta"]

    def test_stranger_cannot_update(self, db, chef, make_user, make_plat):
        plat = make_plat(chef)
        with pytest.raises(Forbidden):
            plat_service.update_plat(db, make_user("chef"), plat.id, {"price": "1"})

    def test_delete_removes_promotions(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef)
        make_promotion(plat)

        plat_service.delete_plat(db, chef, plat.id)

        assert db.query(Plat).count() == 0
        assert db.query(Promotion).count() == 0

    def test_admin_can_delete(self, db, admin, chef, make_plat):
        plat = make_plat(chef)
        plat_service.delete_plat(db, admin, plat.id)
        with pytest.raises(NotFound):
            plat_service.get_plat(db, plat.id)

    def test_missing_dish(self, db, chef):
        with pytest.raises(NotFound):
            plat_service.update_plat(db, chef, uuid.uuid4(), {"price": "1"})


class TestListPlats:
    def test_filters(self, db, make_user, make_plat):
        a, b = make_user("chef"), make_user("chef")
        make_plat(a, name="Green curry", category="thai")
        make_plat(a, name="Pad thai", category="thai")
        make_plat(b, name="Ratatouille", category="french")

        assert len(plat_service.list_plats(db)) == 3
        assert len(plat_service.list_plats(db, chef_id=a.id)) == 2
        assert [p.name for p in plat_service.list_plats(db, category="french")] == ["Ratatouille"]
        assert [p.name for p in plat_service.list_plats(db, name="curry")] == ["Green curry"]
