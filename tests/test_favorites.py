import uuid

import pytest

from models.favorite import FavoritePlat
from services import favorites as favorite_service
from services import plats as plat_service
from services import reviews as review_service
from utils.errors import NotFound, Conflict


class TestFavoritePlats:
    def test_add_list_remove(self, db, customer, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        make_promotion(plat, pct="10")
        review_service.add_plat_review(db, customer, plat.id, 4, "Nice")

        favorite_service.add_favorite_plat(db, customer, plat.id)

        (view,) = favorite_service.list_favorite_plats(db, customer.id)
        assert view.plat.id == plat.id
        assert str(view.price.unit_price) == "18.00"
        assert view.rating.average == 4.0
        assert favorite_service.is_favorite_plat(db, customer.id, plat.id)

        favorite_service.remove_favorite_plat(db, customer, plat.id)
        assert favorite_service.list_favorite_plats(db, customer.id) == []

    def test_duplicate_favorite(self, db, customer, chef, make_plat):
        plat = make_plat(chef)
        favorite_service.add_favorite_plat(db, customer, plat.id)
        with pytest.raises(Conflict):
            favorite_service.add_favorite_plat(db, customer, plat.id)

    def test_unknown_dish(self, db, customer):
        with pytest.raises(NotFound):
            favorite_service.add_favorite_plat(db, customer, uuid.uuid4())

    def test_remove_missing_favorite(self, db, customer, chef, make_plat):
        with pytest.raises(NotFound):
            favorite_service.remove_favorite_plat(db, customer, make_plat(chef).id)

    def test_favorites_are_per_user(self, db, make_user, chef, make_plat):
        owner, other = make_user(), make_user()
        plat = make_plat(chef)
        favorite_service.add_favorite_plat(db, owner, plat.id)

        assert favorite_service.list_favorite_plats(db, other.id) == []
        assert not favorite_service.is_favorite_plat(db, other.id, plat.id)

    def test_deleting_the_dish_drops_it_from_favorites(self, db, customer, chef, make_plat):
        plat = make_plat(chef)
        favorite_service.add_favorite_plat(db, customer, plat.id)

        plat_service.delete_plat(db, chef, plat.id)

        assert db.query(FavoritePlat).count() == 0


class TestFavoriteChefs:
    def test_add_list_remove(self, db, customer, chef, make_plat):
        make_plat(chef, name="A")
        make_plat(chef, name="B")

        favorite_service.add_favorite_chef(db, customer, chef.id)

        (view,) = favorite_service.list_favorite_chefs(db, customer.id)
        assert view.chef.id == chef.id
        assert view.plat_count == 2
        assert view.rating.count == 0

        favorite_service.remove_favorite_chef(db, customer, chef.id)
        assert not favorite_service.is_favorite_chef(db, customer.id, chef.id)

    def test_only_chefs_can_be_followed(self, db, make_user, customer):
        with pytest.raises(NotFound):
            favorite_service.add_favorite_chef(db, customer, make_user().id)

    def test_duplicate_favorite(self, db, customer, chef):
        favorite_service.add_favorite_chef(db, customer, chef.id)
        with pytest.raises(Conflict):
            favorite_service.add_favorite_chef(db, customer, chef.id)


class TestFavoriteRoutes:
    def test_dish_favorites(self, client, customer, chef, make_plat, auth_headers):
        plat = make_plat(chef, price="12.00")
        headers = auth_headers(customer)

        assert client.post("/favorites/plats", headers=headers, json={"plat_id": str(plat.id)}).status_code == 201
        assert client.post("/favorites/plats", headers=headers, json={"plat_id": str(plat.id)}).status_code == 409

        listed = client.get("/favorites/plats", headers=headers).json()
        assert listed[0]["plat_name"] == plat.name
        assert listed[0]["effective_price"] == 12.0
        assert client.get(f"/favorites/plats/{plat.id}/check", headers=headers).json() == {"is_favorite": True}

        assert client.delete(f"/favorites/plats/{plat.id}", headers=headers).status_code == 200
        assert client.delete(f"/favorites/plats/{plat.id}", headers=headers).status_code == 404
        assert client.get(f"/favorites/plats/{plat.id}/check", headers=headers).json() == {"is_favorite": False}

    def test_chef_favorites(self, client, customer, chef, auth_headers):
        headers = auth_headers(customer)

        assert client.post("/favorites/chefs", headers=headers, json={"chef_id": str(chef.id)}).status_code == 201
        listed = client.get("/favorites/chefs", headers=headers).json()
        assert listed[0]["chef_id"] == str(chef.id)
        assert listed[0]["plat_count"] == 0

        missing = client.post("/favorites/chefs", headers=headers, json={"chef_id": str(uuid.uuid4())})
        assert missing.status_code == 404
        assert missing.json()["kind"] == "NotFound"

    def test_requires_authentication(self, client):
        assert client.get("/favorites/plats").status_code in (401, 403)
