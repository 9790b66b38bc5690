"""
app/core/messages.py

User-facing messages, Arabic first with English fallback
"""
from typing import Dict, Literal, Optional

MESSAGES = {
    # Generic
    "request.invalid": {
        "ar": "بيانات الطلب غير صالحة",
        "en": "Invalid request parameters."
    },
    "server.error": {
        "ar": "حدث خطأ في الخادم",
        "en": "Internal server error occurred."
    },
    "auth.invalid_credentials": {
        "ar": "بيانات الاعتماد غير صالحة",
        "en": "Could not validate credentials"
    },
    "auth.inactive_user": {
        "ar": "الحساب غير نشط",
        "en": "Inactive user"
    },

    # Reports: authorization
    "reports.forbidden.view": {
        "ar": "غير مصرح لك بعرض هذا التقرير",
        "en": "You are not allowed to view this report"
    },
    "reports.forbidden.admin": {
        "ar": "غير مصرح لك بإدارة التقارير",
        "en": "Only admins can manage reports"
    },

    # Reports: validation and lookup
    "reports.invalid_id": {
        "ar": "معرف التقرير غير صالح",
        "en": "Invalid report ID format"
    },
    "reports.invalid_ids": {
        "ar": "معرفات التقارير غير صالحة: {ids}",
        "en": "Invalid report IDs: {ids}"
    },
    "reports.invalid_content_id": {
        "ar": "معرف المحتوى غير صالح",
        "en": "Invalid content ID format"
    },
    "reports.content_not_found": {
        "ar": "المحتوى المبلغ عنه غير موجود",
        "en": "Reported content not found"
    },
    "reports.content_lookup_failed": {
        "ar": "حدث خطأ أثناء التحقق من المحتوى",
        "en": "An error occurred while verifying the content"
    },
    "reports.self_report": {
        "ar": "لا يمكنك الإبلاغ عن محتواك الخاص",
        "en": "You cannot report your own content"
    },
    "reports.duplicate": {
        "ar": "لقد قمت بالإبلاغ عن هذا المحتوى من قبل",
        "en": "You have already reported this content"
    },
    "reports.not_found": {
        "ar": "التقرير غير موجود",
        "en": "Report not found"
    },
    "reports.not_deletable": {
        "ar": "التقرير غير موجود أو لا يمكن حذفه",
        "en": "Report not found or cannot be deleted"
    },
    "reports.bulk_not_found": {
        "ar": "لم يتم العثور على أي تقرير مطابق",
        "en": "No matching reports found"
    },
    "reports.reopen_conflict": {
        "ar": "يوجد تقرير مفتوح آخر لنفس المحتوى من نفس المستخدم",
        "en": "Another open report exists for this content from the same reporter"
    },
    "reports.bulk_reopen_conflict": {
        "ar": "لا يمكن إعادة فتح هذه التقارير لوجود تقرير مفتوح آخر لنفس المحتوى: {ids}",
        "en": "These reports cannot be reopened because another open report exists for the same content: {ids}"
    },
    "reports.invalid_date_range": {
        "ar": "تاريخ النهاية يجب أن يكون بعد تاريخ البداية",
        "en": "date_to must be after date_from"
    },
    "reports.export_format": {
        "ar": "تنسيق التصدير غير مدعوم حالياً",
        "en": "Export format is not supported"
    },

    # Reports: success
    "reports.created": {
        "ar": "تم إرسال التقرير بنجاح، سيتم مراجعته",
        "en": "Report submitted successfully and will be reviewed"
    },
    "reports.fetched": {
        "ar": "تم جلب التقارير بنجاح",
        "en": "Reports fetched successfully"
    },
    "reports.details_fetched": {
        "ar": "تم جلب تفاصيل التقرير بنجاح",
        "en": "Report details fetched successfully"
    },
    "reports.deleted": {
        "ar": "تم حذف التقرير بنجاح",
        "en": "Report deleted successfully"
    },
    "reports.stats_fetched": {
        "ar": "تم جلب إحصائيات التقارير بنجاح",
        "en": "Report statistics fetched successfully"
    },
    "reports.status_updated": {
        "ar": "تم تحديث حالة التقرير بنجاح",
        "en": "Report status updated successfully"
    },
    "reports.bulk_updated": {
        "ar": "تم تحديث التقارير بنجاح",
        "en": "Reports updated successfully"
    },
    "reports.content_fetched": {
        "ar": "تم جلب تقارير المحتوى بنجاح",
        "en": "Content reports fetched successfully"
    },

    # Notifications
    "notifications.report_created": {
        "ar": {"title": "تقرير جديد",
               "body": "تم تقديم تقرير جديد بسبب: {reason}"},
        "en": {"title": "New report",
               "body": "A new report was filed for: {reason}"}
    },
    "notifications.report_status_updated": {
        "ar": {"title": "تحديث حالة التقرير",
               "body": "تم تغيير حالة تقريرك إلى: {status}"},
        "en": {"title": "Report status updated",
               "body": "Your report status changed to: {status}"}
    },
}


def get_message(key: str, lang: Literal["ar", "en"] = "ar", variables: Optional[Dict[str, int | str]] = None):
    """
    Retrieve a localized message based on key and language, with optional variable substitution.

    Falls back to English and then to the key itself when a translation is missing.
    """
    message = MESSAGES.get(key, {}).get(lang) or MESSAGES.get(key, {}).get("en") or key
    if variables and isinstance(message, str):
        try:
            return message.format(**variables)
        except (KeyError, ValueError):
            return message
    return message
