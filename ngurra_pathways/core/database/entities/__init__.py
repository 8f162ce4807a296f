"""
Database entity models.

Modules:
- users: Accounts and issued token sessions
- jobs: Job listings and applications
- messaging: Conversations, participants and direct messages
- social: Feed posts, reactions, comments, connections, follows and blocks
- mentorship: Mentor sessions
- billing: Subscriptions, invoices and processed Stripe events
- notifications: In-app notifications
- uploads: Uploaded file metadata
- rate_limits: Per-user action counters
"""

from . import billing, jobs, mentorship, messaging, notifications, rate_limits, social, uploads, users
from .billing import Invoice, ProcessedWebhookEvent, Subscription, SubscriptionStatus, SubscriptionTier
from .jobs import ApplicationStatus, EmploymentType, Job, JobApplication
from .mentorship import MentorSession, SessionStatus
from .messaging import Conversation, ConversationParticipant, ConversationType, DirectMessage, ParticipantRole
from .notifications import Notification, NotificationPriority, NotificationType
from .rate_limits import RateLimitTracker
from .social import (
    ConnectionStatus,
    PostVisibility,
    ReactionType,
    SocialComment,
    SocialPost,
    SocialReaction,
    UserBlock,
    UserConnection,
    UserFollow,
)
from .uploads import FileCategory, FileUpload
from .users import AuthSession, User, UserType

__all__ = [
    "billing",
    "jobs",
    "mentorship",
    "messaging",
    "notifications",
    "rate_limits",
    "social",
    "uploads",
    "users",
    "ApplicationStatus",
    "AuthSession",
    "ConnectionStatus",
    "Conversation",
    "ConversationParticipant",
    "ConversationType",
    "DirectMessage",
    "EmploymentType",
    "FileCategory",
    "FileUpload",
    "Invoice",
    "Job",
    "JobApplication",
    "MentorSession",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "ParticipantRole",
    "PostVisibility",
    "ProcessedWebhookEvent",
    "RateLimitTracker",
    "ReactionType",
    "SessionStatus",
    "SocialComment",
    "SocialPost",
    "SocialReaction",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionTier",
    "User",
    "UserBlock",
    "UserConnection",
    "UserFollow",
    "UserType",
]
