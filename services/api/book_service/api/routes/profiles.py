from __future__ import annotations

from book_service.api.deps import get_profile_store
from book_service.domain.isbn import require_isbn13
from book_service.domain.types import UserProfile
from book_service.schemas.profiles import (
    DislikedAuthorIn,
    HistoryIn,
    InterestIn,
    ProfileCreate,
    ProfileListOut,
    ProfileUpdate,
    SuccessOut,
)
from book_service.services.profile_store import ProfileStore
from fastapi import APIRouter, Depends, HTTPException

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("", response_model=ProfileListOut)
def list_profiles(store: ProfileStore = Depends(get_profile_store)):
    return ProfileListOut(profiles=store.list())


@router.post("", response_model=UserProfile, status_code=201)
def create_profile(payload: ProfileCreate, store: ProfileStore = Depends(get_profile_store)):
    return store.create(payload)


@router.get("/{profile_id}", response_model=UserProfile)
def get_profile(profile_id: str, store: ProfileStore = Depends(get_profile_store)):
    profile = store.get(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("/{profile_id}", response_model=UserProfile)
def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    store: ProfileStore = Depends(get_profile_store),
):
    return store.update(profile_id, payload)


@router.delete("/{profile_id}", response_model=SuccessOut)
def delete_profile(profile_id: str, store: ProfileStore = Depends(get_profile_store)):
    if not store.delete(profile_id):
        raise HTTPException(status_code=404, detail="Profile not found")
    return SuccessOut()


@router.post("/{profile_id}/history", response_model=SuccessOut)
def add_to_history(
    profile_id: str,
    payload: HistoryIn,
    store: ProfileStore = Depends(get_profile_store),
):
    # history is always stored as ISBN-13 so the previously-read filter can match it
    store.add_to_reading_history(profile_id, require_isbn13(payload.isbn))
    return SuccessOut()


@router.post("/{profile_id}/interests", response_model=SuccessOut)
def add_interest(
    profile_id: str,
    payload: InterestIn,
    store: ProfileStore = Depends(get_profile_store),
):
    store.add_interest(profile_id, payload.interest)
    return SuccessOut()


@router.delete("/{profile_id}/interests/{interest}", response_model=SuccessOut)
def remove_interest(
    profile_id: str,
    interest: str,
    store: ProfileStore = Depends(get_profile_store),
):
    store.remove_interest(profile_id, interest)
    return SuccessOut()


@router.post("/{profile_id}/disliked-authors", response_model=SuccessOut)
def add_disliked_author(
    profile_id: str,
    payload: DislikedAuthorIn,
    store: ProfileStore = Depends(get_profile_store),
):
    store.add_disliked_author(profile_id, payload.author)
    return SuccessOut()
