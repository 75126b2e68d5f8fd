from api.main import app


def test_list_supported_currencies(client):
    response = client.get('/api/v1/currencies')

    assert response.status_code == 200
    data = response.json()
    assert data['total_currencies'] == len(data['currencies']) == 14
    codes = [c['code'] for c in data['currencies']]
    assert codes[:3] == ['USD', 'EUR', 'GBP']
    assert len(set(codes)) == len(codes)
    assert data['currencies'][1] == {'code': 'EUR', 'name': 'Euro', 'symbol': '€', 'country': 'European Union'}


def test_service_info(client, app_settings):
    response = client.get('/api/v1/info')

    assert response.status_code == 200
    data = response.json()
    assert data['service'] == app_settings.APP_NAME
    assert data['version'] == app_settings.APP_VERSION
    assert data['environment'] == 'development'
    assert data['endpoints']['best_quote'] == 'POST /api/v1/quotes/best'


def test_advertised_endpoints_are_served(client):
    served = {
        (method, route.path)
        for route in app.routes
        for method in getattr(route, 'methods', None) or ()
    }

    for endpoint in client.get('/api/v1/info').json()['endpoints'].values():
        method, path = endpoint.split(' ', 1)
        assert (method, path) in served
