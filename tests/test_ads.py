from coursemart.models import Ad


def ad_payload(**overrides):
    payload = {
        "image": "https://cdn.example.com/banner.png",
        "title": "Spring Sale",
        "subtitle": "All courses 50% off",
        "templateId": "sale",
        "priority": 5,
        "customStyles": {"borderRadius": 12},
    }
    payload.update(overrides)
    return payload


class TestAds:
    def test_create_ad(self, client, admin_headers):
        response = client.post("/api/ads", json=ad_payload(), headers=admin_headers)

        assert response.status_code == 201
        data = response.get_json()
        assert data["title"] == "Spring Sale"
        assert data["templateId"] == "sale"
        assert data["cardDesign"] == "basic"
        assert data["category"] == "general"
        assert data["customStyles"] == {"borderRadius": 12}

    def test_create_requires_image_title_subtitle(self, client, admin_headers):
        response = client.post("/api/ads", json=ad_payload(subtitle=""), headers=admin_headers)

        assert response.status_code == 400
        assert response.get_json()["message"] == "Please provide image, title, and subtitle for the ad."

    def test_invalid_template_rejected(self, client, admin_headers):
        response = client.post("/api/ads", json=ad_payload(templateId="popup"), headers=admin_headers)

        assert response.status_code == 400
        assert Ad.query.count() == 0

    def test_public_listing_by_priority(self, client, admin_headers):
        client.post("/api/ads", json=ad_payload(title="Low", priority=1), headers=admin_headers)
        client.post("/api/ads", json=ad_payload(title="High", priority=9), headers=admin_headers)

        response = client.get("/api/ads")

        assert [ad["title"] for ad in response.get_json()] == ["High", "Low"]

    def test_get_missing_ad(self, client):
        response = client.get("/api/ads/404")

        assert response.status_code == 404
        assert response.get_json()["message"] == "Ad not found"

    def test_update_keeps_fields_not_sent(self, client, admin_headers):
        ad = client.post("/api/ads", json=ad_payload(), headers=admin_headers).get_json()

        response = client.put(
            f"/api/ads/{ad['_id']}",
            json={"title": "Summer Sale", "subtitle": "", "startDate": "2026-06-01T00:00:00"},
            headers=admin_headers,
        )

        data = response.get_json()
        assert data["title"] == "Summer Sale"
        assert data["subtitle"] == "All courses 50% off"
        assert data["startDate"] == "2026-06-01T00:00:00"

    def test_delete_ad(self, client, admin_headers):
        ad = client.post("/api/ads", json=ad_payload(), headers=admin_headers).get_json()

        response = client.delete(f"/api/ads/{ad['_id']}", headers=admin_headers)

        assert response.get_json() == {"message": "Ad removed successfully"}
        assert client.get(f"/api/ads/{ad['_id']}").status_code == 404

    def test_writes_require_admin(self, client, user_headers):
        assert client.post("/api/ads", json=ad_payload(), headers=user_headers).status_code == 403
