from conftest import bearer


def book(client, seed, start='2030-01-01', end='2030-01-05'):
    return client.post('/renting/create', json={
        'room_id': seed['room_id'], 'start_date': start, 'end_date': end,
    }, headers=bearer(seed['customer_token']))


def test_home_lists_rooms_publicly(client, seed):
    res = client.get('/')
    assert res.status_code == 200
    body = res.get_json()
    assert body['success'] is True
    assert body['data'][0]['furniture_list'] == 'Chair (2)'


def test_register_then_login(client, app):
    res = client.post('/register', json={
        'username': 'dave', 'full_name': 'Dave Lister', 'email': 'dave@example.com',
        'date_of_birth': '1988-02-02', 'phone': '555', 'address': 'Red Dwarf',
        'subject': 'subject1', 'password': 'smeghead',
    })
    assert res.status_code == 201

    res = client.post('/register', json={'username': 'dave'})
    assert res.status_code == 400
    assert res.get_json() == {'success': False, 'message': 'All fields are required'}

    res = client.post('/login', json={'username': 'dave', 'password': 'smeghead'})
    assert res.status_code == 200
    assert res.get_json()['data']['role'] == 'customer'

    token = res.get_json()['data']['access_token']
    assert client.get('/renting/my-rentals', headers=bearer(token)).get_json()['data'] == []


def test_renting_requires_login(client, seed):
    res = client.get('/renting')
    assert res.status_code == 401
    assert res.get_json()['success'] is False


def test_booking_checkout_and_card_payment(client, seed):
    res = book(client, seed)
    assert res.status_code == 201
    contract_id = res.get_json()['data']['contract_id']

    res = client.get(f'/renting/checkout/{contract_id}', headers=bearer(seed['customer_token']))
    assert res.get_json()['data']['total_rent'] == '500.00'

    res = client.post('/renting/pay', json={'contract_id': contract_id, 'payment_method': 'card'},
                      headers=bearer(seed['customer_token']))
    assert res.status_code == 200
    assert res.get_json()['data']['contract_status'] == 'active'

    res = client.get(f'/renting/checkout/{contract_id}', headers=bearer(seed['customer_token']))
    assert res.status_code == 409


def test_overlapping_booking_is_conflict(client, seed):
    assert book(client, seed).status_code == 201
    res = book(client, seed, '2030-01-04', '2030-01-10')
    assert res.status_code == 409
    assert 'already booked' in res.get_json()['message']


def test_invalid_dates_are_rejected(client, seed):
    res = book(client, seed, '2030-01-05', '2030-01-01')
    assert res.status_code == 400


def test_staff_confirms_cash_payment(client, seed):
    contract_id = book(client, seed).get_json()['data']['contract_id']
    client.post('/renting/pay', json={'contract_id': contract_id, 'payment_method': 'cash'},
                headers=bearer(seed['customer_token']))

    assert client.get('/renting/pending', headers=bearer(seed['customer_token'])).status_code == 403

    pending = client.get('/renting/pending', headers=bearer(seed['staff_token'])).get_json()['data']
    assert len(pending) == 1
    payment_id = pending[0]['payment_id']

    res = client.post(f'/renting/confirm-payment/{payment_id}', headers=bearer(seed['staff_token']))
    assert res.get_json()['data'] == {'confirmed': True}
    res = client.post(f'/renting/confirm-payment/{payment_id}', headers=bearer(seed['staff_token']))
    assert res.status_code == 200
    assert res.get_json()['data'] == {'confirmed': False}

    rentals = client.get('/renting/my-rentals', headers=bearer(seed['customer_token'])).get_json()['data']
    assert rentals[0]['contract_status'] == 'active'
    assert rentals[0]['payment_status'] == 'completed'


def test_cancel_pending(client, seed):
    contract_id = book(client, seed).get_json()['data']['contract_id']

    res = client.post('/renting/cancel-pending', json={}, headers=bearer(seed['customer_token']))
    assert res.status_code == 400

    for _ in range(2):
        res = client.post('/renting/cancel-pending', json={'contract_id': contract_id},
                          headers=bearer(seed['customer_token']))
        assert res.status_code == 200

    res = client.post('/renting/cancel-pending', json={'contract_id': contract_id},
                      headers=bearer(seed['staff_token']))
    assert res.status_code == 403


def test_room_management_requires_staff(client, seed):
    room = {'room_number': '303', 'room_type': 'study room', 'rent_price': '90'}

    assert client.post('/rooms/add', json=room).status_code == 401
    assert client.post('/rooms/add', json=room, headers=bearer(seed['customer_token'])).status_code == 403

    res = client.post('/rooms/add', json=room, headers=bearer(seed['staff_token']))
    assert res.status_code == 201
    room_id = res.get_json()['data']['id']

    res = client.post('/rooms/add', json=room, headers=bearer(seed['staff_token']))
    assert res.status_code == 409

    res = client.post(f'/rooms/edit/{room_id}', json=dict(room, furniture=[
        {'furniture_id': seed['chair_id'], 'quantity': 1},
    ]), headers=bearer(seed['staff_token']))
    assert res.status_code == 200
    assert client.get(f'/rooms/get/{room_id}').get_json()['data']['furniture'][0]['name'] == 'Chair'

    res = client.post(f'/rooms/delete/{room_id}', headers=bearer(seed['staff_token']))
    assert res.status_code == 200
    assert client.get(f'/rooms/view/{room_id}').status_code == 404


def test_rooms_list_reports_availability(client, seed):
    res = client.get('/rooms/list')
    assert res.status_code == 200
    assert res.get_json()['data'][0]['is_available'] is True


def test_furniture_endpoints(client, seed):
    headers = bearer(seed['staff_token'])

    res = client.post('/furniture/add', json={'name': 'Sofa'}, headers=headers)
    assert res.status_code == 201
    sofa_id = res.get_json()['data']['id']

    assert client.post('/furniture/add', json={'name': 'Sofa'}, headers=headers).status_code == 409
    assert client.get(f'/furniture/get/{sofa_id}').get_json()['data']['name'] == 'Sofa'
    assert client.post(f'/furniture/delete/{seed["chair_id"]}', headers=headers).status_code == 409
    assert client.post(f'/furniture/delete/{sofa_id}', headers=headers).status_code == 200
    assert client.get(f'/furniture/get/{sofa_id}').status_code == 404


def test_non_object_json_body_is_a_bad_request(client, seed):
    res = client.post('/login', json=['a'])
    assert res.status_code == 400
    assert res.get_json() == {'success': False, 'message': 'Invalid request body.'}

    res = client.post('/rooms/add', json='101', headers=bearer(seed['staff_token']))
    assert res.status_code == 400


def test_register_rejects_overlong_password(client, app):
    res = client.post('/register', json={
        'username': 'eve', 'full_name': 'Eve Moneypenny', 'email': 'eve@example.com',
        'date_of_birth': '1990-03-03', 'phone': 5550101, 'address': 'London',
        'subject': 'subject1', 'password': 'x' * 100,
    })
    assert res.status_code == 400
    assert 'at most 72 bytes' in res.get_json()['message']

    res = client.post('/login', json={'username': 'eve', 'password': 'x' * 100})
    assert res.status_code == 400


def test_add_room_with_numeric_room_number(client, seed):
    res = client.post('/rooms/add', json={
        'room_number': 404, 'room_type': 'study room', 'rent_price': 80,
    }, headers=bearer(seed['staff_token']))
    assert res.status_code == 201

    res = client.get(f"/rooms/get/{res.get_json()['data']['id']}")
    assert res.get_json()['data']['room_number'] == '404'
