import pytest

from coursemart.extensions import db
from coursemart.models import Course, Review


class TestCalculateRatings:
    def test_zero_reviews_resets_rating(self, make_course):
        course = make_course(rating=4.5, reviews=3)

        Course.calculate_ratings(course.id)
        db.session.commit()

        assert course.rating == 0
        assert course.reviews == 0

    def test_average_of_course_reviews_only(self, make_course, make_user):
        course = make_course()
        other = make_course(title="Other")
        a, b = make_user(), make_user()
        db.session.add_all([
            Review(user_id=a.id, reviewable_id=course.id, reviewable_model="Course", rating=5),
            Review(user_id=b.id, reviewable_id=course.id, reviewable_model="Course", rating=2),
            Review(user_id=a.id, reviewable_id=other.id, reviewable_model="Course", rating=1),
            # same id, different reviewable type: not counted
            Review(user_id=b.id, reviewable_id=course.id, reviewable_model="Product", rating=1),
        ])
        db.session.commit()

        Course.calculate_ratings(course.id)
        db.session.commit()

        assert course.rating == pytest.approx(3.5)
        assert course.reviews == 2

    def test_missing_course_is_ignored(self, app):
        assert Course.calculate_ratings(12345) is None


class TestReviewEndpoints:
    def test_add_review_updates_course_rating(self, client, user_headers, make_course):
        course = make_course()

        response = client.post(
            "/api/reviews",
            json={"reviewableId": course.id, "reviewableType": "Course", "rating": 4, "comment": "Good"},
            headers=user_headers,
        )

        assert response.status_code == 201
        assert response.get_json()["data"]["rating"] == 4
        db.session.refresh(course)
        assert course.rating == 4
        assert course.reviews == 1

    def test_second_submit_updates_existing_review(self, client, user_headers, make_course):
        course = make_course()
        body = {"reviewableId": course.id, "reviewableType": "Course", "rating": 2}
        client.post("/api/reviews", json=body, headers=user_headers)

        body["rating"] = 5
        response = client.post("/api/reviews", json=body, headers=user_headers)

        assert response.status_code == 200
        assert response.get_json()["message"] == "Review updated"
        assert Review.query.count() == 1
        db.session.refresh(course)
        assert (course.rating, course.reviews) == (5, 1)

    def test_ratings_aggregate_across_users(self, client, make_user, auth_headers, make_course):
        course = make_course()
        for rating in (1, 4, 4):
            reviewer = make_user()
            client.post(
                "/api/reviews",
                json={"reviewableId": course.id, "rating": rating},
                headers=auth_headers(reviewer),
            )

        db.session.refresh(course)
        assert course.rating == pytest.approx(3.0)
        assert course.reviews == 3

    def test_delete_last_review_resets_rating(self, client, user_headers, make_course):
        course = make_course()
        created = client.post(
            "/api/reviews", json={"reviewableId": course.id, "rating": 3}, headers=user_headers
        ).get_json()

        response = client.delete(f"/api/reviews/{created['data']['_id']}", headers=user_headers)

        assert response.status_code == 200
        db.session.refresh(course)
        assert (course.rating, course.reviews) == (0, 0)

    def test_only_owner_or_admin_deletes(self, client, make_user, auth_headers, admin_headers, make_course):
        course = make_course()
        owner, stranger = make_user(), make_user()
        created = client.post(
            "/api/reviews", json={"reviewableId": course.id, "rating": 3}, headers=auth_headers(owner)
        ).get_json()
        review_id = created["data"]["_id"]

        forbidden = client.delete(f"/api/reviews/{review_id}", headers=auth_headers(stranger))
        allowed = client.delete(f"/api/reviews/{review_id}", headers=admin_headers)

        assert forbidden.status_code == 403
        assert allowed.status_code == 200

    def test_rating_out_of_range(self, client, user_headers, make_course):
        course = make_course()

        response = client.post(
            "/api/reviews", json={"reviewableId": course.id, "rating": 6}, headers=user_headers
        )

        assert response.status_code == 400
        assert Review.query.count() == 0

    def test_fractional_rating_kept(self, client, user_headers, make_course):
        course = make_course()

        response = client.post(
            "/api/reviews", json={"reviewableId": course.id, "rating": 4.5}, headers=user_headers
        )

        assert response.status_code == 201
        assert response.get_json()["data"]["rating"] == 4.5
        db.session.refresh(course)
        assert course.rating == pytest.approx(4.5)

    @pytest.mark.parametrize("rating", [0.5, "five", True])
    def test_invalid_rating_rejected(self, client, user_headers, make_course, rating):
        course = make_course()

        response = client.post(
            "/api/reviews", json={"reviewableId": course.id, "rating": rating}, headers=user_headers
        )

        assert response.status_code == 400
        assert Review.query.count() == 0

    def test_product_reviews_not_supported(self, client, user_headers):
        response = client.post(
            "/api/reviews",
            json={"reviewableId": 1, "reviewableType": "Product", "rating": 5},
            headers=user_headers,
        )

        assert response.status_code == 400

    def test_review_for_missing_course(self, client, user_headers):
        response = client.post(
            "/api/reviews", json={"reviewableId": 77, "rating": 5}, headers=user_headers
        )

        assert response.status_code == 404
        assert response.get_json()["message"] == "Course not found."

    def test_list_reviews_newest_first(self, client, make_user, auth_headers, make_course):
        course = make_course()
        first, second = make_user(name="First"), make_user(name="Second")
        client.post("/api/reviews", json={"reviewableId": course.id, "rating": 5}, headers=auth_headers(first))
        client.post("/api/reviews", json={"reviewableId": course.id, "rating": 4}, headers=auth_headers(second))

        response = client.get(f"/api/reviews/Course/{course.id}")

        data = response.get_json()
        assert data["count"] == 2
        assert [r["user"]["name"] for r in data["data"]] == ["Second", "First"]
