import pytest
import requests

import payments
from errors import PaymentError, PaymentTimeout
from payments import PaymentProxy

CARD = {'number': '4242424242424242', 'exp_month': '12', 'exp_year': '2030', 'cvc': '123',
        'name': 'Tina Tenant', 'customer': 'tina@example.com'}


class FakeResponse:

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def proxy():
    return PaymentProxy('http://payments.test/api/', timeout=3)


class TestCharge:

    def test_posts_payload_with_timeout(self, proxy, monkeypatch):
        seen = {}

        def fake_post(url, json=None, timeout=None):
            seen.update(url=url, json=json, timeout=timeout)
            return FakeResponse(201, {'id': 'ch_1', 'status': 'succeeded'})

        monkeypatch.setattr(payments.requests, 'post', fake_post)
        result = proxy.charge(CARD, '1450.00', 'USD')
        assert result['status'] == 'succeeded'
        assert seen['url'] == 'http://payments.test/api/payments'
        assert seen['timeout'] == 3
        assert seen['json']['currency'] == 'usd'
        assert seen['json']['amount'] == '1450.00'

    def test_non_success_status(self, proxy, monkeypatch):
        monkeypatch.setattr(payments.requests, 'post', lambda *a, **kw: FakeResponse(402, {'error': 'declined'}))
        with pytest.raises(PaymentError, match='payment processing error'):
            proxy.charge(CARD, 10, 'usd')

    def test_network_failure(self, proxy, monkeypatch):
        def boom(*a, **kw):
            raise requests.ConnectionError("refused")
        monkeypatch.setattr(payments.requests, 'post', boom)
        with pytest.raises(PaymentError):
            proxy.charge(CARD, 10, 'usd')

    def test_timeout_is_distinct(self, proxy, monkeypatch):
        def slow(*a, **kw):
            raise requests.Timeout("read timed out")
        monkeypatch.setattr(payments.requests, 'post', slow)
        with pytest.raises(PaymentTimeout):
            proxy.charge(CARD, 10, 'usd')

    @pytest.mark.parametrize('amount', ['0', '-5', 'ten', 'NaN', 'Infinity', '-Infinity'])
    def test_invalid_amount(self, proxy, amount):
        with pytest.raises(ValueError):
            proxy.charge(CARD, amount, 'usd')


class TestHistory:

    def test_list_payload(self, proxy, monkeypatch):
        rows = [{'amount': '1450.00', 'currency': 'usd', 'status': 'succeeded'}]
        monkeypatch.setattr(payments.requests, 'get', lambda *a, **kw: FakeResponse(200, rows))
        assert proxy.fetch_history('tina@example.com') == rows

    def test_wrapped_payload(self, proxy, monkeypatch):
        rows = [{'amount': '10'}]
        monkeypatch.setattr(payments.requests, 'get',
                            lambda *a, **kw: FakeResponse(200, {'transactions': rows}))
        assert proxy.fetch_history('tina@example.com') == rows

    def test_failure_degrades_to_empty(self, proxy, monkeypatch):
        def boom(*a, **kw):
            raise requests.ConnectionError("down")
        monkeypatch.setattr(payments.requests, 'get', boom)
        assert proxy.fetch_history('tina@example.com') == []

    def test_http_error_degrades_to_empty(self, proxy, monkeypatch):
        monkeypatch.setattr(payments.requests, 'get', lambda *a, **kw: FakeResponse(500))
        assert proxy.fetch_history('tina@example.com') == []


class TestPayRentRoutes:

    def test_dashboard_loads_when_service_down(self, login_as, tenant, monkeypatch):
        def boom(*a, **kw):
            raise requests.ConnectionError("down")
        monkeypatch.setattr(payments.requests, 'get', boom)
        resp = login_as(tenant).get('/tenant-dashboard/pay-rent')
        assert resp.status_code == 200
        assert b'No payments found' in resp.data

    def test_failed_charge_shows_generic_error(self, login_as, tenant, monkeypatch):
        monkeypatch.setattr(payments.requests, 'post', lambda *a, **kw: FakeResponse(500))
        monkeypatch.setattr(payments.requests, 'get', lambda *a, **kw: FakeResponse(200, []))
        client = login_as(tenant)
        resp = client.post('/tenant-dashboard/pay-rent', data={
            'card_number': '4242 4242 4242 4242', 'exp_month': '12', 'exp_year': '2030',
            'cvc': '123', 'card_name': 'Tina', 'amount': '1450', 'currency': 'usd'},
            follow_redirects=True)
        assert b'There was a payment processing error.' in resp.data

    @pytest.mark.parametrize('amount', ['NaN', 'Infinity'])
    def test_non_finite_amount_is_a_form_error(self, login_as, tenant, monkeypatch, amount):
        def unreachable(*a, **kw):
            raise AssertionError("payment service must not be called")
        monkeypatch.setattr(payments.requests, 'post', unreachable)
        monkeypatch.setattr(payments.requests, 'get', lambda *a, **kw: FakeResponse(200, []))
        resp = login_as(tenant).post('/tenant-dashboard/pay-rent', data={
            'card_number': '4242424242424242', 'exp_month': '12', 'exp_year': '2030',
            'cvc': '123', 'card_name': 'Tina', 'amount': amount, 'currency': 'usd'},
            follow_redirects=True)
        assert resp.status_code == 200
        assert b'Amount must be a number' in resp.data
