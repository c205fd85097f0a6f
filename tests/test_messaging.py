import pytest

import messaging
from errors import NotFound, RecipientNotFound
from models import MailboxMessage, TenantLandlord


@pytest.fixture
def tenants(make_user, landlord):
    people = [make_user(f'tenant{i}@example.com') for i in range(3)]
    for t in people:
        messaging.link_tenant(landlord.id, t.email)
    return people


class TestSend:

    def test_send_to_single_email(self, tenant, landlord):
        sent = messaging.send(tenant.id, landlord.email, 'Leaky tap', 'Kitchen tap drips.')
        assert len(sent) == 1
        assert sent[0].receiver_id == landlord.id
        assert sent[0].sender_id == tenant.id

    def test_send_to_user_id_and_id_list(self, tenant, landlord):
        assert len(messaging.send(landlord.id, tenant.id, 'Hi', 'Welcome')) == 1
        assert len(messaging.send(landlord.id, [tenant.id, landlord.id], 'Hi', 'Both')) == 2

    def test_unknown_recipient_inserts_nothing(self, tenant, landlord):
        with pytest.raises(RecipientNotFound) as exc:
            messaging.send(tenant.id, f'{landlord.email}, ghost@example.com', 'Hello', 'Anyone?')
        assert exc.value.email == 'ghost@example.com'
        assert MailboxMessage.query.count() == 0

    def test_unknown_user_id(self, tenant):
        with pytest.raises(NotFound):
            messaging.send(tenant.id, 9999, 'Hello', 'Anyone?')

    def test_send_to_all_linked_tenants(self, landlord, tenants, make_user):
        make_user('unlinked@example.com')
        sent = messaging.send(landlord.id, 'all', 'Water shutoff', 'Tuesday 9-11am.')
        assert len(sent) == len(tenants)
        assert {m.receiver_id for m in sent} == {t.id for t in tenants}
        assert len({m.sent_at for m in sent}) == 1
        assert {(m.subject, m.message_content) for m in sent} == {('Water shutoff', 'Tuesday 9-11am.')}
        assert MailboxMessage.query.count() == len(tenants)

    def test_all_with_no_tenants_sends_nothing(self, landlord):
        assert messaging.send(landlord.id, 'ALL', 'Notice', 'Nobody home') == []

    @pytest.mark.parametrize('recipient', [True, False])
    def test_boolean_is_not_a_user_id(self, tenant, landlord, recipient):
        with pytest.raises(ValueError):
            messaging.send(tenant.id, recipient, 'Hello', 'Anyone?')
        assert MailboxMessage.query.count() == 0

    def test_blank_subject_rejected(self, tenant, landlord):
        with pytest.raises(ValueError):
            messaging.send(tenant.id, landlord.email, '  ', 'body')


class TestListing:

    def test_lists_sent_and_received_newest_first(self, tenant, landlord, make_user):
        other = make_user('other@example.com')
        first = messaging.send(tenant.id, landlord.email, 'First', 'one')[0]
        second = messaging.send(landlord.id, tenant.email, 'Second', 'two')[0]
        messaging.send(other.id, landlord.email, 'Not yours', 'three')
        listed = messaging.list_messages(tenant.id)
        assert [m.id for m in listed] == [second.id, first.id]

    def test_limit_returns_newest(self, tenant, landlord):
        for n in range(4):
            messaging.send(landlord.id, tenant.email, f'Notice {n}', 'body')
        listed = messaging.list_messages(tenant.id, limit=2)
        assert [m.subject for m in listed] == ['Notice 3', 'Notice 2']


class TestLinks:

    def test_link_is_idempotent(self, landlord, tenant):
        messaging.link_tenant(landlord.id, tenant.email)
        messaging.link_tenant(landlord.id, tenant.email)
        assert TenantLandlord.query.count() == 1
        assert messaging.linked_tenants(landlord.id) == [tenant]
        assert messaging.linked_landlords(tenant.id) == [landlord]

    def test_link_unknown_email(self, landlord):
        with pytest.raises(RecipientNotFound):
            messaging.link_tenant(landlord.id, 'nobody@example.com')


class TestMailboxRoutes:

    def test_compose_unknown_recipient_shows_error(self, login_as, tenant):
        resp = login_as(tenant).post('/tenant-dashboard/mailbox', data={
            'recipient': 'ghost@example.com', 'subject': 'Hi', 'content': 'Hello'})
        assert resp.status_code == 200
        assert b'No user found with email ghost@example.com' in resp.data
        assert b'value="ghost@example.com"' in resp.data
        assert MailboxMessage.query.count() == 0

    def test_compose_redirects_after_send(self, login_as, tenant, landlord):
        resp = login_as(tenant).post('/tenant-dashboard/mailbox', data={
            'recipient': landlord.email, 'subject': 'Rent', 'content': 'Paid today'})
        assert resp.status_code == 302
        assert MailboxMessage.query.count() == 1

    def test_landlord_broadcast(self, login_as, landlord, tenants):
        resp = login_as(landlord).post('/landlord-dashboard/mailbox', data={
            'recipient': 'all', 'subject': 'Notice', 'content': 'Inspection Friday'})
        assert resp.status_code == 302
        assert MailboxMessage.query.count() == 3

    def test_mailbox_page_lists_messages(self, login_as, tenant, landlord):
        messaging.send(landlord.id, tenant.email, 'Welcome home', 'Keys are in the box')
        resp = login_as(tenant).get('/tenant-dashboard/mailbox')
        assert b'Welcome home' in resp.data

    def test_landlord_links_tenant_by_email(self, login_as, landlord, tenant):
        resp = login_as(landlord).post('/landlord-dashboard/tenants', data={'email': tenant.email})
        assert resp.status_code == 302
        assert messaging.linked_tenants(landlord.id) == [tenant]
