from django.conf import settings
from django.core.cache import cache

from clinic.models import User

PUBLIC_DOCTORS_CACHE_KEY = 'public:doctors'


def _doctor_card(u: User) -> dict:
    profile = getattr(u, 'doctor_profile', None)
    return {
        'id': u.id,
        'name': u.get_full_name() or u.username,
        'degree': profile.degree if profile else '',
        'specialistTitle': profile.specialist_title if profile else '',
        'clinicName': profile.clinic_name if profile else '',
        'chamberAddress': profile.chamber_address if profile else '',
        'phone': profile.phone_number if profile else '',
    }


def list_public_doctors() -> list[dict]:
    """Active doctors with their public profile, cached for ``PUBLIC_CACHE_SECONDS``."""
    data = cache.get(PUBLIC_DOCTORS_CACHE_KEY)
    if data is None:
        qs = (
            User.objects.filter(role=User.ROLE_DOCTOR, is_active=True)
            .select_related('doctor_profile')
            .order_by('first_name', 'username')
        )
        data = [_doctor_card(u) for u in qs]
        cache.set(PUBLIC_DOCTORS_CACHE_KEY, data, settings.PUBLIC_CACHE_SECONDS)
    return data


def is_public_doctor(doctor_id: int) -> bool:
    return User.objects.filter(id=doctor_id, role=User.ROLE_DOCTOR, is_active=True).exists()
