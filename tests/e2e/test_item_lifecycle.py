"""
End-to-end tests of an item's life: upload, listing, serving and deletion.
"""

from fastapi import status
from fastapi.testclient import TestClient

from tests.fixtures.app_fixtures import (
    filename_from_url,
    image_part,
    image_parts,
    sample_product,
    stored_files,
)


class TestProductLifecycle:
    """Products created through both upload endpoints and removed again"""

    def test_upload_list_serve_delete(self, client: TestClient, upload_dir):
        # Step 1: one product through each upload endpoint
        single = client.post(
            "/upload-single",
            data=sample_product(),
            files={"image": image_part("Red Chair.png")},
        ).json()
        multiple = client.post(
            "/upload-multiple?type=products",
            data={"title": "Blue Table"},
            files=image_parts("images", ["Top View.png", "Side View.png"]),
        ).json()
        assert len(stored_files(upload_dir, "products")) == 3

        # Step 2: both are listed with their image URLs
        products = client.get("/get-products").json()
        assert [product["_id"] for product in products] == [single["insertedId"], multiple["insertedId"]]
        assert products[1]["images"] == multiple["images"]

        # Step 3: every image URL is served
        for url in single["images"] + multiple["images"]:
            assert client.get(url).status_code == status.HTTP_200_OK

        # Step 4: delete the table by its stored filenames
        response = client.post(
            "/delete-item",
            json={
                "data": {
                    "type": "products",
                    "productId": multiple["insertedId"],
                    "images": [filename_from_url(url) for url in multiple["images"]],
                }
            },
        )
        assert response.status_code == status.HTTP_200_OK

        # Step 5: only the chair remains, and the table's images are gone
        products = client.get("/get-products").json()
        assert [product["_id"] for product in products] == [single["insertedId"]]
        assert stored_files(upload_dir, "products") == [filename_from_url(single["images"][0])]
        for url in multiple["images"]:
            assert client.get(url).status_code == status.HTTP_404_NOT_FOUND

    def test_deleting_twice_fails_on_missing_files(self, client: TestClient):
        upload = client.post("/upload-single", files={"image": image_part("a.png")}).json()
        body = {"data": {"type": "products", "productId": upload["insertedId"], "images": upload["images"]}}

        assert client.post("/delete-item", json=body).status_code == status.HTTP_200_OK

        response = client.post("/delete-item", json=body)
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["detail"].startswith("Error deleting file: ")


class TestCategoryIsolation:
    """Each category keeps its own directory and collection"""

    def test_same_filename_in_two_categories(self, client: TestClient, upload_dir, mongo_db):
        articles = client.post("/upload-multiple?type=articles", files=image_parts("images", ["cover.png"])).json()
        qna = client.post("/upload-multiple?type=qna", files=image_parts("images", ["cover.png"])).json()

        assert "/uploads/articles/" in articles["images"][0]
        assert "/uploads/qna/" in qna["images"][0]
        assert len(stored_files(upload_dir, "articles")) == 1
        assert len(stored_files(upload_dir, "qna")) == 1

        # deleting the article with the qna type finds no file there
        response = client.post(
            "/delete-item",
            json={"data": {"type": "qna", "productId": articles["insertedId"], "images": ["1-cover.png"]}},
        )
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert mongo_db["articles"].count_documents({}) == 1
