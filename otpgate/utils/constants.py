"""
otpgate/utils/constants.py

Purpose: Centralized static content

- Outbound message bodies (OTP SMS, WhatsApp notifications)
- User-facing API messages
- Reusable limits

(Prevents hardcoding across the codebase)
"""

# ============================================================
# OTP
# ============================================================

OTP_LENGTH = 6

OTP_MESSAGE_TEMPLATE = "Your {app_name} verification code is: {code}. Valid for {ttl_minutes} minutes."

# ============================================================
# API MESSAGES
# ============================================================

OTP_SENT_MESSAGE = "Verification code sent successfully"
OTP_VERIFIED_MESSAGE = "Verification code verified successfully"

PHONE_REQUIRED_MESSAGE = "Phone number is required"
PHONE_AND_CODE_REQUIRED_MESSAGE = "Phone number and code are required"
INVALID_PHONE_MESSAGE = "Invalid phone number format. Use +216XXXXXXXX or 0XXXXXXXX"
INVALID_CODE_MESSAGE = "Verification code must be 6 digits"
CODE_NOT_FOUND_MESSAGE = "Verification code not found or expired"
CODE_EXPIRED_MESSAGE = "Verification code expired"
CODE_MISMATCH_MESSAGE = "Invalid verification code"
RATE_LIMITED_MESSAGE = "Too many verification requests. Please try again in {minutes} minutes."
SMS_NOT_CONFIGURED_MESSAGE = "SMS service not configured"
SMS_SEND_FAILED_MESSAGE = "Failed to send SMS"

NOTIFICATION_SENT_MESSAGE = "WhatsApp message sent successfully"
NOTIFICATION_FAILED_MESSAGE = "Failed to send WhatsApp message"
NOTIFICATION_MISSING_FIELDS_MESSAGE = "Invalid request. Missing required fields: {fields}"
ADMIN_NOT_CONFIGURED_MESSAGE = "Admin access is not configured"
ADMIN_AUTH_REQUIRED_MESSAGE = "Admin authorization required"

# ============================================================
# NOTIFICATION TEMPLATES (WhatsApp, Arabic)
# ============================================================

APPLICATION_ID_DISPLAY_LENGTH = 8

NOTIFICATION_HEADER = "🔔 إشعار من {app_name}"

DOCUMENT_REJECTION_TEMPLATE = """{header}

تم رفض المستند التالي:
📄 {document_name}

{reason_block}

يرجى تسجيل الدخول إلى حسابك وتحديث المستند.

شكراً لتفهمكم."""

DOCUMENT_REJECTION_REASON = "سبب الرفض:\n{reason}"
DOCUMENT_REJECTION_NO_REASON = "يرجى رفع نسخة محدثة من المستند"

DOCUMENT_REQUEST_TEMPLATE = """{header}

نحتاج منك رفع المستندات التالية:

{document_list}
{custom_block}
يرجى تسجيل الدخول إلى حسابك ورفع المستندات المطلوبة.

شكراً لتعاونكم."""

APPLICATION_APPROVED_TEMPLATE = """{header}

{greeting}تمت الموافقة على طلبك رقم #{application_ref} ✅

{custom_block}يمكنك متابعة الخطوات التالية من حسابك.

شكراً لثقتكم."""

APPLICATION_REJECTED_TEMPLATE = """{header}

{greeting}نأسف لإعلامك بأنه تم رفض طلبك رقم #{application_ref} ❌

{reason_block}يمكنك تسجيل الدخول إلى حسابك للاطلاع على التفاصيل.

شكراً لتفهمكم."""

APPLICANT_GREETING = "مرحباً {applicant_name}،\n"
