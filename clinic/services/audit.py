from typing import Optional, Any, Dict

from clinic.models import AuditEvent


def log_action(*, user_id: Optional[int], action: str, object_type: Optional[str]=None,
               object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    return AuditEvent.objects.create(
        user_id=user_id,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
