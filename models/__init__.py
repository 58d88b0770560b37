# Importing every model here registers all tables with SQLAlchemy's metadata,
# so db.create_all() and Flask-Migrate see the full schema.
from .account import AccountStatusEnum, load_account
from .admin import Admin, AdminRoleEnum
from .brand import Brand
from .influencer import Influencer
from .customer import Customer, CustomerStatusEnum
from .subscription_plan import SubscriptionPlan, SubscriberTypeEnum
from .user_subscription import UserSubscription, SubscriptionStatusEnum, BillingCycleEnum
from .payment_history import PaymentHistory, PaymentStatusEnum, PaymentMethodEnum
from .campaign import (Campaign, CampaignMetrics, CampaignPayment, CampaignStatusEnum, CampaignPaymentStatusEnum,
                       CampaignPaymentMethodEnum)
from .collaboration import Collaboration, CollaborationStatusEnum
from .product import Product, ProductStatusEnum
from .order import Order, OrderItem, OrderStatusEnum, AttributionStatusEnum
from .notification import Notification, ParticipantTypeEnum
from .feedback import Feedback, FeedbackStatusEnum, FeedbackTypeEnum
from .content import CampaignContent, ContentStatusEnum
from .offer import Offer, OfferStatusEnum
from .message import Message
