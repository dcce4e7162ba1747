from typing import List

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import AddressCreate, AddressOut, AddressUpdate, GeocodeOut, RouteOut

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("", response_model=List[AddressOut])
def list_addresses(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """The caller's addresses; administrators see every address."""
    return services.AddressService(db).list(user)


@router.get("/geocode", response_model=GeocodeOut)
def geocode(address: str = "", db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Placeholder geocoding: always answers with zero coordinates."""
    return services.AddressService(db).geocode(address)


@router.get("/route", response_model=RouteOut)
def route(
    origin_id: int = Query(gt=0),
    destination_id: int = Query(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Placeholder route between two stored addresses."""
    return services.AddressService(db).route(user, origin_id, destination_id)


@router.post("", response_model=AddressOut, status_code=201)
def create_address(payload: AddressCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.AddressService(db).create(user, payload)


@router.get("/{address_id}", response_model=AddressOut)
def get_address(address_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.AddressService(db).get(user, address_id)


@router.put("/{address_id}", response_model=AddressOut)
def update_address(
    payload: AddressUpdate,
    address_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.AddressService(db).update(user, address_id, payload)


@router.delete("/{address_id}", status_code=204)
def delete_address(address_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.AddressService(db).delete(user, address_id)
    return Response(status_code=204)
