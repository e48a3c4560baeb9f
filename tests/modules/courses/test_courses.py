from decimal import Decimal

from httpx import AsyncClient


class TestCourseEndpoints:
    async def test_create_course_with_fee(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center()

        response = await client.post(
            "/api/v1/courses",
            headers=admin_headers,
            json={
                "center_id": center.id,
                "name": "Informática",
                "tuition_fee": {"fee": "4500", "fee_fine": "500", "enrollment_fee": "2000"},
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "active"
        assert Decimal(data["tuition_fee"]["fee"]) == Decimal("4500")
        assert data["tuition_fee"]["status"] == "active"

    async def test_fee_change_creates_new_version(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center()
        created = await client.post(
            "/api/v1/courses",
            headers=admin_headers,
            json={"center_id": center.id, "name": "Inglês", "tuition_fee": {"fee": "5000"}},
        )
        course_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/courses/{course_id}",
            headers=admin_headers,
            json={"tuition_fee": {"fee": "6000"}},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["tuition_fee"]["fee"]) == Decimal("6000")

        history = await client.get(f"/api/v1/courses/{course_id}/tuition-fees", headers=admin_headers)
        versions = history.json()["data"]
        assert [Decimal(v["fee"]) for v in versions] == [Decimal("6000"), Decimal("5000")]
        assert [v["status"] for v in versions] == ["active", "inactive"]

    async def test_rename_keeps_fee(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center()
        course = await factory.course(center)

        response = await client.patch(
            f"/api/v1/courses/{course.id}",
            headers=admin_headers,
            json={"name": "Inglês Avançado"},
        )

        data = response.json()["data"]
        assert data["name"] == "Inglês Avançado"
        assert Decimal(data["tuition_fee"]["fee"]) == Decimal("5000")

    async def test_deactivate_course(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center()
        course = await factory.course(center)

        response = await client.delete(f"/api/v1/courses/{course.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "inactive"

        listed = await client.get(f"/api/v1/courses/center/{center.id}", headers=admin_headers)
        assert listed.json()["data"] == []
        listed = await client.get(
            f"/api/v1/courses/center/{center.id}",
            headers=admin_headers,
            params={"include_inactive": "true"},
        )
        assert listed.json()["data"][0]["tuition_fee"] is None

    async def test_class_requires_active_course(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center()
        course = await factory.course(center)
        await client.delete(f"/api/v1/courses/{course.id}", headers=admin_headers)

        response = await client.post(
            "/api/v1/classes",
            headers=admin_headers,
            json={"center_id": center.id, "course_id": course.id, "name": "Turma B"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_class_in_other_center(self, client: AsyncClient, admin_headers, factory):
        center = await factory.center("Centro A")
        other = await factory.center("Centro B")
        course = await factory.course(center)

        response = await client.post(
            "/api/v1/classes",
            headers=admin_headers,
            json={"center_id": other.id, "course_id": course.id, "name": "Turma B"},
        )

        assert response.status_code == 422

    async def test_unknown_class(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/v1/classes/404", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "CLASS_NOT_FOUND"
