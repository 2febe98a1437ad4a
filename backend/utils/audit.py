from typing import Optional
from sqlalchemy.orm import Session
from models.log import Log

def write_log(db: Session, *, user_id, action, resource, resource_id=None, status="SUCCESS", ip=None, meta=None):
    entry = Log(
        user_id=user_id, action=action, resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        status=status, ip=ip, meta=meta or {},
    )
    db.add(entry)
    db.commit()

def client_ip(request) -> Optional[str]:
    return request.client.host if request is not None and request.client else None
