"""Message threads between a brand and an influencer, one thread per collaboration."""
from flask import current_app

from extensions import db
from models.campaign import Campaign
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.message import Message
from models.notification import ParticipantTypeEnum
from services.notification_service import create_notification
from utils.errors import ServiceError

MAX_MESSAGE_LENGTH = 1000


def record_message(collaboration, sender_type, text, commit=False):
    """Stores a message on the collaboration's thread. The caller validates `text`."""
    message = Message(
        brand_id=collaboration.campaign.brand_id,
        influencer_id=collaboration.influencer_id,
        campaign_id=collaboration.campaign_id,
        sender_type=ParticipantTypeEnum(sender_type),
        message=text,
    )
    db.session.add(message)
    if commit:
        db.session.commit()
    return message


def _thread_query(collaboration):
    return Message.query.filter_by(campaign_id=collaboration.campaign_id, influencer_id=collaboration.influencer_id)


def latest_message(collaboration):
    message = _thread_query(collaboration).order_by(Message.created_at.desc(), Message.id.desc()).first()
    return message.to_dict() if message else None


def _collaboration_for(account, collab_id):
    query = Collaboration.query.filter(Collaboration.id == collab_id)
    if account.role == 'brand':
        query = query.join(Campaign, Collaboration.campaign_id == Campaign.id).filter(Campaign.brand_id == account.id)
    else:
        query = query.filter(Collaboration.influencer_id == account.id)
    collaboration = query.first()
    if collaboration is None:
        raise ServiceError('Collaboration not found', 404)
    return collaboration


def get_thread(account, collab_id):
    collaboration = _collaboration_for(account, collab_id)
    messages = _thread_query(collaboration).order_by(Message.created_at, Message.id).all()
    return [message.to_dict() for message in messages]


def send_message(account, collab_id, text):
    """
    Posts a message from a brand or influencer to the other side of a collaboration and
    notifies the recipient.

    Raises:
        ServiceError: If the collaboration is not the caller's, is cancelled, or the text is
            empty or too long.
    """
    collaboration = _collaboration_for(account, collab_id)
    if collaboration.status == CollaborationStatusEnum.CANCELLED:
        raise ServiceError('This collaboration is closed')
    text = (text or '').strip() if isinstance(text, str) else ''
    if not text:
        raise ServiceError('Message is required')
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ServiceError(f'Message cannot exceed {MAX_MESSAGE_LENGTH} characters')

    message = record_message(collaboration, account.role, text)
    if account.role == 'brand':
        recipient_id, recipient_type = collaboration.influencer_id, 'influencer'
    else:
        recipient_id, recipient_type = collaboration.campaign.brand_id, 'brand'
    create_notification(
        recipient_id=recipient_id, recipient_type=recipient_type, type='message_received',
        title='New message', body=f"{account.display} sent you a message about '{collaboration.campaign.title}'.",
        sender_id=account.id, sender_type=account.role, related_id=collaboration.id,
        data={'campaign_id': collaboration.campaign_id}, commit=False,
    )
    db.session.commit()
    current_app.logger.info(f"{account.role.capitalize()} {account.id} messaged on collaboration {collaboration.id}.")
    return message
