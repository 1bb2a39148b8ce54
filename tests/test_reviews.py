import uuid

import pytest

from models.review import PlatReview
from services import plats as plat_service
from services import reviews as review_service
from utils.errors import NotFound, InvalidArgument, Conflict


class TestPlatReviews:
    def test_review_and_summary(self, db, make_user, chef, make_plat):
        plat = make_plat(chef)
        alice, bob = make_user(first_name="Alice", last_name="Martin"), make_user()

        review_service.add_plat_review(db, alice, plat.id, 5, "  Perfect couscous  ")
        review_service.add_plat_review(db, bob, plat.id, 2, "Too salty")

        summary = review_service.plat_rating(db, plat.id)
        assert summary.count == 2
        assert summary.average == 3.5
        reviews = review_service.list_plat_reviews(db, plat.id)
        assert {r.review_text for r in reviews} == {"Perfect couscous", "Too salty"}
        assert review_service.author_name(db, alice.id) == "Alice Martin"

    def test_one_review_per_user_and_dish(self, db, customer, chef, make_plat):
        plat = make_plat(chef)
        review_service.add_plat_review(db, customer, plat.id, 4, "Good")

        with pytest.raises(Conflict):
            review_service.add_plat_review(db, customer, plat.id, 1, "Changed my mind")
        assert review_service.has_reviewed_plat(db, customer.id, plat.id)
        assert db.query(PlatReview).count() == 1

    @pytest.mark.parametrize("rate,text", [(0, "Meh"), (6, "Wow"), (3, "   ")])
    def test_invalid_review(self, db, customer, chef, make_plat, rate, text):
        plat = make_plat(chef)
        with pytest.raises(InvalidArgument):
            review_service.add_plat_review(db, customer, plat.id, rate, text)

    def test_unknown_dish(self, db, customer):
        with pytest.raises(NotFound):
            review_service.add_plat_review(db, customer, uuid.uuid4(), 5, "Ghost dish")

    def test_no_reviews(self, db, chef, make_plat):
        summary = review_service.plat_rating(db, make_plat(chef).id)
        assert summary.count == 0
        assert summary.average is None

    def test_deleting_the_dish_drops_its_reviews(self, db, customer, chef, make_plat):
        plat = make_plat(chef)
        review_service.add_plat_review(db, customer, plat.id, 4, "Good")

        plat_service.delete_plat(db, chef, plat.id)

        assert db.query(PlatReview).count() == 0


class TestChefReviews:
    def test_review_a_chef(self, db, customer, chef):
        review = review_service.add_chef_review(db, customer, chef.id, 4, "Always on time")

        assert review.chef_id == chef.id
        assert review_service.chef_rating(db, chef.id).average == 4.0
        assert [r.id for r in review_service.list_user_chef_reviews(db, customer.id)] == [review.id]

    def test_only_chefs_can_be_reviewed(self, db, make_user, customer):
        with pytest.raises(NotFound):
            review_service.add_chef_review(db, customer, make_user().id, 5, "Not a chef")

    def test_one_review_per_user_and_chef(self, db, customer, chef):
        review_service.add_chef_review(db, customer, chef.id, 5, "Great")
        with pytest.raises(Conflict):
            review_service.add_chef_review(db, customer, chef.id, 5, "Great again")


class TestReviewRoutes:
    def test_post_and_read_dish_reviews(self, client, customer, chef, make_plat, auth_headers):
        plat = make_plat(chef)
        headers = auth_headers(customer)

        created = client.post("/reviews/plats", headers=headers,
                              json={"plat_id": str(plat.id), "rate": 5, "review_text": "Delicious"})
        assert created.status_code == 201
        assert created.json()["target_id"] == str(plat.id)

        public = client.get(f"/reviews/plats/{plat.id}").json()
        assert public["count"] == 1
        assert public["average_rating"] == 5.0
        assert public["items"][0]["user_name"] == f"{customer.first_name} {customer.last_name}"

        assert client.get(f"/reviews/plats/{plat.id}/check", headers=headers).json() == {"reviewed": True}
        assert len(client.get("/reviews/plats/mine", headers=headers).json()) == 1

        again = client.post("/reviews/plats", headers=headers,
                            json={"plat_id": str(plat.id), "rate": 3, "review_text": "Again"})
        assert again.status_code == 409

    def test_rating_out_of_range(self, client, customer, chef, make_plat, auth_headers):
        plat = make_plat(chef)
        response = client.post("/reviews/plats", headers=auth_headers(customer),
                               json={"plat_id": str(plat.id), "rate": 9, "review_text": "Too good"})
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidArgument"

    def test_chef_reviews(self, client, customer, chef, auth_headers):
        headers = auth_headers(customer)

        created = client.post("/reviews/chefs", headers=headers,
                              json={"chef_id": str(chef.id), "rate": 4, "review_text": "Friendly"})
        assert created.status_code == 201

        public = client.get(f"/reviews/chefs/{chef.id}").json()
        assert public["count"] == 1
        assert client.get(f"/reviews/chefs/{chef.id}/check", headers=headers).json() == {"reviewed": True}
        assert client.post("/reviews/chefs", headers=headers, json={
            "chef_id": str(uuid.uuid4()), "rate": 4, "review_text": "Nobody",
        }).status_code == 404

    def test_posting_requires_authentication(self, client, chef, make_plat):
        plat = make_plat(chef)
        response = client.post("/reviews/plats", json={"plat_id": str(plat.id), "rate": 5, "review_text": "Hi"})
        assert response.status_code in (401, 403)
