import pytest
from models import Notification, ParticipantTypeEnum
from services.notification_service import create_notification, get_notifications, mark_read
from tests.conftest import make_brand, make_influencer, make_customer, login


def test_create_notification_requires_fields(db):
    with pytest.raises(ValueError):
        create_notification(recipient_id=1, recipient_type='brand', type='')

def test_create_without_commit_joins_caller_transaction(db):
    notification = create_notification(1, 'brand', 'application_received', commit=False)
    assert notification in db.session.new
    db.session.rollback()
    assert Notification.query.count() == 0

def test_get_notifications_newest_first_with_unread_count(db, app, mocker):
    for index in range(3):
        create_notification(7, 'influencer', 'invite_received', title=f'Invite {index}')
    create_notification(7, 'brand', 'application_received') # Same id, other account type.
    first = Notification.query.filter_by(title='Invite 0').one()
    mark_read(7, 'influencer', [first.id])

    notifications, unread = get_notifications(7, ParticipantTypeEnum.INFLUENCER)
    assert [n.title for n in notifications] == ['Invite 2', 'Invite 1', 'Invite 0']
    assert unread == 2

    mocker.patch.dict(app.config, {'NOTIFICATION_FETCH_LIMIT': 1})
    notifications, _ = get_notifications(7, 'influencer')
    assert len(notifications) == 1

def test_list_and_mark_read_routes(client):
    brand = make_brand()
    other = make_influencer()
    mine = create_notification(brand.id, 'brand', 'application_received', title='New application')
    theirs = create_notification(other.id, 'influencer', 'invite_received')
    login(client, brand.email)

    data = client.get('/notifications/').get_json()
    assert data['unread_count'] == 1
    assert data['notifications'][0]['title'] == 'New application'

    response = client.post('/notifications/mark-read', json={'ids': [mine.id, theirs.id]})
    assert response.get_json()['updated'] == 1
    assert client.get('/notifications/').get_json()['unread_count'] == 0

    assert client.post('/notifications/mark-read', json={'id': mine.id}).get_json()['updated'] == 1

@pytest.mark.parametrize("body, message", [
    ({}, 'No ids provided'),
    ({'ids': 'all'}, 'No ids provided'),
    ({'ids': ['abc']}, 'Invalid notification id'),
])
def test_mark_read_validation(client, body, message):
    make_brand()
    login(client, 'brand@example.com')
    response = client.post('/notifications/mark-read', json=body)
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == message

def test_customers_have_no_notifications(client):
    make_customer()
    login(client, 'customer@example.com')
    assert client.get('/notifications/').status_code == 403

def test_mark_all_read_route(client):
    brand = make_brand()
    for index in range(2):
        create_notification(brand.id, 'brand', 'application_received', title=f'Application {index}')
    create_notification(brand.id, 'influencer', 'invite_received')
    login(client, brand.email)

    response = client.post('/notifications/mark-all-read')
    assert response.get_json() == {'success': True, 'message': 'All notifications marked as read', 'updated': 2}
    assert client.get('/notifications/').get_json()['unread_count'] == 0
    assert Notification.query.filter_by(read=False).count() == 1
