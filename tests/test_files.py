import pytest

from filedrop.models import File


@pytest.fixture
def alice(make_user):
    return make_user(email="alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user(email="bob@example.com", name="Bob")


@pytest.mark.parametrize(
    "method,path,kwargs",
    [
        ("get", "/api/file.fetchAll", {}),
        ("get", "/api/file.fetchFile?id=x", {}),
        ("post", "/api/file.deleteFile", {"json": {"id": "x"}}),
        ("post", "/api/file.getFile", {"json": {"key": "x"}}),
    ],
)
def test_requires_session(client, method, path, kwargs):
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_fetch_all_only_returns_own_files(client, alice, bob, make_file, auth_headers):
    make_file(alice, name="a1.pdf")
    make_file(alice, name="a2.pdf")
    make_file(bob, name="b1.pdf")

    response = client.get("/api/file.fetchAll", headers=auth_headers(alice))
    assert response.status_code == 200
    assert sorted(f["name"] for f in response.json()) == ["a1.pdf", "a2.pdf"]
    assert {f["userId"] for f in response.json()} == {alice.id}


def test_fetch_file_by_id(client, alice, make_file, auth_headers):
    file = make_file(alice)
    response = client.get(f"/api/file.fetchFile?id={file.id}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["key"] == file.key


def test_fetch_file_is_not_owner_scoped(client, alice, bob, make_file, auth_headers):
    file = make_file(alice)
    response = client.get(f"/api/file.fetchFile?id={file.id}", headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["id"] == file.id


def test_fetch_file_missing(client, alice, auth_headers):
    response = client.get("/api/file.fetchFile?id=missing", headers=auth_headers(alice))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_delete_own_file(client, db, alice, make_file, storage, auth_headers):
    file = make_file(alice)
    response = client.post("/api/file.deleteFile", json={"id": file.id}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["id"] == file.id
    assert storage.deleted == [file.key]
    assert db.query(File).filter_by(id=file.id).first() is None


def test_delete_other_users_file_is_not_found(client, db, alice, bob, make_file, storage, auth_headers):
    file = make_file(alice)
    response = client.post("/api/file.deleteFile", json={"id": file.id}, headers=auth_headers(bob))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
    assert storage.deleted == []
    db.expire_all()
    assert db.query(File).filter_by(id=file.id).one().user_id == alice.id


def test_delete_keeps_going_when_storage_fails(client, db, alice, make_file, storage, auth_headers):
    storage.fail = True
    file = make_file(alice)
    response = client.post("/api/file.deleteFile", json={"id": file.id}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert db.query(File).filter_by(id=file.id).first() is None


def test_get_file_by_key(client, alice, bob, make_file, auth_headers):
    file = make_file(alice, key="alice/contract.pdf")

    response = client.post("/api/file.getFile", json={"key": "alice/contract.pdf"}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["id"] == file.id

    response = client.post("/api/file.getFile", json={"key": "alice/contract.pdf"}, headers=auth_headers(bob))
    assert response.status_code == 404


def test_get_file_validates_input(client, alice, auth_headers):
    response = client.post("/api/file.getFile", json={}, headers=auth_headers(alice))
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
