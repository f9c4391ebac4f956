from app.services.otp_store import OtpStore, InMemoryOtpStore, RedisOtpStore, create_otp_store
from app.services.otp_service import OtpService
from app.services.feed_service import FeedService
from app.services.email_service import EmailService
