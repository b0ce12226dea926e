from bson import ObjectId


def test_get_wishlist_not_found(client, user):
    user_id, headers = user
    res = client.get(f"/wishlist/{user_id}", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"message": "Wishlist not found"}


def test_add_and_get_wishlist(client, user, create_book):
    user_id, headers = user
    book = create_book()
    res = client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    assert res.status_code == 201
    assert res.json() == {"message": "Product added to wishlist"}

    res = client.get(f"/wishlist/{user_id}", headers=headers)
    assert res.status_code == 200
    wishlist = res.json()
    assert wishlist["userId"] == user_id
    assert [it["productId"]["title"] for it in wishlist["products"]] == [book["title"]]


def test_add_duplicate_is_rejected(client, user, create_book):
    user_id, headers = user
    book = create_book()
    client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    res = client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"message": "Product already in wishlist"}
    wishlist = client.get(f"/wishlist/{user_id}", headers=headers).json()
    assert len(wishlist["products"]) == 1


def test_add_requires_product_id(client, user):
    user_id, headers = user
    res = client.post(f"/wishlist/{user_id}", json={}, headers=headers)
    assert res.status_code == 400


def test_remove_from_wishlist(client, user, create_book):
    user_id, headers = user
    book = create_book()
    client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    res = client.delete(f"/wishlist/{user_id}/{book['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Product removed from wishlist"}
    assert client.get(f"/wishlist/{user_id}", headers=headers).json()["products"] == []


def test_remove_absent_entry_is_noop(client, user, create_book):
    user_id, headers = user
    book = create_book()
    client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    res = client.delete(f"/wishlist/{user_id}/{ObjectId()}", headers=headers)
    assert res.status_code == 200
    assert len(client.get(f"/wishlist/{user_id}", headers=headers).json()["products"]) == 1


def test_remove_without_wishlist(client, user):
    user_id, headers = user
    res = client.delete(f"/wishlist/{user_id}/{ObjectId()}", headers=headers)
    assert res.status_code == 404


def test_wishlist_requires_token(client, user):
    user_id, _ = user
    assert client.get(f"/wishlist/{user_id}").status_code == 401
    assert client.post(f"/wishlist/{user_id}", json={"productId": str(ObjectId())}).status_code == 401


def test_add_rejects_malformed_product_id(client, user):
    user_id, headers = user
    res = client.post(f"/wishlist/{user_id}", json={"productId": "not-an-id"}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid product id"}


def test_first_add_creates_wishlist_and_duplicate_keeps_it(client, user, database, create_book):
    user_id, headers = user
    book = create_book()
    assert client.get(f"/wishlist/{user_id}", headers=headers).status_code == 404

    assert client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers).status_code == 201
    res = client.post(f"/wishlist/{user_id}", json={"productId": book["id"]}, headers=headers)
    assert res.status_code == 400

    assert len(database.wishlists.find({"userId": user_id})) == 1
    res = client.get(f"/wishlist/{user_id}", headers=headers)
    assert res.status_code == 200
    assert [it["productId"]["id"] for it in res.json()["products"]] == [book["id"]]
