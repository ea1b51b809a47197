# petbiz/api/users/test_routes.py


def test_my_profile_never_exposes_password_hash(client, auth_headers, owner_session, vet_session):
    owner = client.get('/api/users/me', headers=auth_headers(owner_session)).get_json()
    business = client.get('/api/users/me', headers=auth_headers(vet_session)).get_json()

    assert owner['email'] == "owner@example.com"
    assert owner['pets'][0]['pet_id'] == "pet-1"
    assert business['business_type'] == "vet"
    assert 'password_hash' not in owner
    assert 'password_hash' not in business


def test_pet_endpoints(client, auth_headers, owner_session, vet_session):
    headers = auth_headers(owner_session)

    response = client.post('/api/users/me/pets', json={"name": "Coco", "species": "cat"}, headers=headers)
    assert response.status_code == 201
    pet_id = response.get_json()['pet_id']

    response = client.patch(f'/api/users/me/pets/{pet_id}', json={"breed": "Persian"}, headers=headers)
    assert response.get_json()['breed'] == "Persian"

    assert client.delete(f'/api/users/me/pets/{pet_id}', headers=headers).status_code == 200
    assert client.delete(f'/api/users/me/pets/{pet_id}', headers=headers).status_code == 404
    assert len(client.get('/api/users/me/pets', headers=headers).get_json()) == 1

    # 사업자 계정은 반려동물 API를 사용할 수 없음
    assert client.get('/api/users/me/pets', headers=auth_headers(vet_session)).status_code == 403


def test_profile_update_validation(client, auth_headers, owner_session):
    response = client.patch('/api/users/me', json={"contact_no": "abc"}, headers=auth_headers(owner_session))
    assert response.status_code == 400
    assert "contact_no" in response.get_json()['details']


def test_business_profile_endpoints(client, auth_headers, vet_session, owner_session):
    headers = auth_headers(vet_session)

    profile = client.get('/api/users/business/me', headers=headers).get_json()
    assert profile['business_name'] == "Happy Paws Clinic"
    assert profile['emergency_24hrs'] is False
    assert 'password_hash' not in profile

    response = client.patch('/api/users/business/me',
                            json={"business_name": "Happy Paws 24", "emergency_24hrs": True}, headers=headers)
    assert response.status_code == 200
    body = response.get_json()
    assert body['business_name'] == "Happy Paws 24"
    assert body['emergency_24hrs'] is True
    assert body['email'] == "vet@example.com"
    assert 'password_hash' not in body

    response = client.patch('/api/users/business/me', json={"emergency_24hrs": "true"}, headers=headers)
    assert response.status_code == 400
    assert "emergency_24hrs" in response.get_json()['details']

    # 반려인 계정은 사업자 프로필 API를 사용할 수 없음
    owner_headers = auth_headers(owner_session)
    assert client.get('/api/users/business/me', headers=owner_headers).status_code == 403
    assert client.patch('/api/users/business/me', json={"name": "Kim"}, headers=owner_headers).status_code == 403
