"""
Restricted vocabularies for tag fields.

Provenance strings come from vendors and are unbounded, so lookups are
case-insensitive and anything unknown falls back to a default tag.
"""

CHANNEL_DEFAULT = "웹"
PLATFORM_DEFAULT = "OTHER"
PAYMENT_STATUS_DEFAULT = "pending"

# canonical tag -> aliases (matched lower-cased, whitespace-trimmed)
CHANNEL_ALIASES: dict[str, tuple[str, ...]] = {
    "웹": ("web", "website", "homepage", "홈페이지"),
    "모바일": ("mobile",),
    "앱": ("app",),
    "전화": ("phone", "tel"),
    "이메일": ("email", "e-mail"),
    "현장": ("walk-in", "walkin"),
    "제휴사": ("partner",),
    "NOL": (),
    "NOL 인터파크": ("interpark", "인터파크", "nol interpark"),
    "KLOOK": ("클룩",),
    "VIATOR": (),
    "GetYourGuide": ("get your guide", "gyg"),
    "EXPEDIA": ("익스피디아",),
}

PLATFORM_ALIASES: dict[str, tuple[str, ...]] = {
    "NOL": ("놀", "야놀자"),
    "VASCO": (),
    "KLOOK": ("클룩",),
    "VIATOR": (),
    "GETYOURGUIDE": ("get your guide", "gyg"),
    "EXPEDIA": ("익스피디아",),
    "AGODA": ("아고다",),
    "BOOKING": ("booking.com",),
    "OTHER": ("etc", "기타"),
}

PAYMENT_STATUS_ALIASES: dict[str, tuple[str, ...]] = {
    "pending": ("waiting", "unpaid", "대기", "예약대기", "결제대기", "미결제", "입금대기"),
    "confirmed": ("paid", "completed", "complete", "확정", "예약확정", "결제완료", "입금완료"),
    "cancelled": ("canceled", "cancel", "취소", "예약취소", "결제취소"),
    "refunded": ("refund", "환불", "환불완료"),
}


def _build_lookup(aliases: dict[str, tuple[str, ...]]) -> dict[str, str]:
    lookup = {}
    for canonical, names in aliases.items():
        lookup[canonical.lower()] = canonical
        for name in names:
            lookup[name.lower()] = canonical
    return lookup


CHANNEL_LOOKUP = _build_lookup(CHANNEL_ALIASES)
PLATFORM_LOOKUP = _build_lookup(PLATFORM_ALIASES)
PAYMENT_STATUS_LOOKUP = _build_lookup(PAYMENT_STATUS_ALIASES)

CHANNELS = frozenset(CHANNEL_ALIASES)
PLATFORMS = frozenset(PLATFORM_ALIASES)
PAYMENT_STATUSES = frozenset(PAYMENT_STATUS_ALIASES)

# Restricted-vocabulary fields and their allowed values
TAG_VOCABULARIES: dict[str, frozenset[str]] = {
    "channel": CHANNELS,
    "platform_name": PLATFORMS,
    "payment_status": PAYMENT_STATUSES,
}
