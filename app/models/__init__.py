# Base.metadata 에 모든 테이블을 등록하기 위한 import
from app.models.user import User, Role, AuthProvider, ApprovalStatus  # noqa: F401
from app.models.verification import PendingUser, PasswordResetCode  # noqa: F401
from app.models.token_blacklist import BlacklistedToken  # noqa: F401
from app.models.payment import Payment, PaymentStatus  # noqa: F401
from app.models.wallet import MentorWallet, PayoutMethod, PayoutRequest, PayoutStatus  # noqa: F401
from app.models.notification import Notification, NotificationPriority  # noqa: F401
from app.models.admin_log import AdminActionLog, AdminAction  # noqa: F401
