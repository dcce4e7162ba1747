"""Teaching resources.

Administrators manage resources; other users see public ones and those
explicitly shared with them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import ResourceCreate, ResourceOut, ResourceShare, ResourceUpdate

router = APIRouter(prefix="/resources", tags=["resources"])

admin_only = require_roles(models.UserRole.administrator)


@router.get("", response_model=List[ResourceOut])
def list_resources(
    type: Optional[models.ResourceType] = None,
    is_public: Optional[bool] = None,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.ResourceService(db).list(user, type=type, is_public=is_public)


@router.post("", response_model=ResourceOut, status_code=201)
def create_resource(payload: ResourceCreate, db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    return services.ResourceService(db).create(user, payload)


@router.get("/{resource_id}", response_model=ResourceOut)
def get_resource(resource_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ResourceService(db).get(user, resource_id)


@router.put("/{resource_id}", response_model=ResourceOut)
def update_resource(
    payload: ResourceUpdate,
    resource_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    return services.ResourceService(db).update(user, resource_id, payload)


@router.delete("/{resource_id}", status_code=204)
def delete_resource(resource_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    services.ResourceService(db).delete(user, resource_id)
    return Response(status_code=204)


@router.post("/{resource_id}/share", response_model=ResourceOut)
def share_resource(
    payload: ResourceShare,
    resource_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    return services.ResourceService(db).share(user, resource_id, payload.user_ids)


@router.delete("/{resource_id}/share/{user_id}", status_code=204)
def unshare_resource(
    resource_id: int = Path(gt=0),
    user_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    services.ResourceService(db).unshare(user, resource_id, user_id)
    return Response(status_code=204)
