# petbiz/api/users/services.py
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List

from petbiz.api.users.schemas import BusinessProfileUpdateSchema, PetProfileSchema, ProfileUpdateSchema
from petbiz.core.errors import NotFoundError, load_payload
from petbiz.models.user import BusinessUser, PetProfile, User
from petbiz.services.firestore_service import DocumentStore
from petbiz.utils.datetime_utils import DateTimeUtils


class UserService:
    """반려인/사업자 계정 조회, 프로필 수정, 반려동물 목록 관리를 담당합니다."""
    USERS = 'users'
    BUSINESS_USERS = 'business_users'

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = DateTimeUtils.now):
        self.store = store
        self.clock = clock
        logging.info("UserService initialized.")

    def get_user(self, user_id: str) -> User:
        data = self.store.get(self.USERS, user_id)
        if data is None:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        return User.from_dict(data)

    def get_business_user(self, user_id: str) -> BusinessUser:
        data = self.store.get(self.BUSINESS_USERS, user_id)
        if data is None:
            raise NotFoundError("사업자 계정을 찾을 수 없습니다.")
        return BusinessUser.from_dict(data)

    def update_profile(self, user_id: str, payload: Dict[str, Any]) -> User:
        """이름, 연락처, 주소를 부분 업데이트합니다."""
        data = load_payload(ProfileUpdateSchema(), payload, partial=True)
        user = self._update_user(user_id, lambda u: replace(u, **data))
        logging.info(f"Profile updated for user {user_id}: {sorted(data.keys())}")
        return user

    def update_business_profile(self, user_id: str, payload: Dict[str, Any]) -> BusinessUser:
        """상호, 담당자 이름, 연락처, 주소, 24시간 응급 대응 여부를 부분 업데이트합니다."""
        data = load_payload(BusinessProfileUpdateSchema(), payload, partial=True)
        now = self.clock()

        def _apply(current: Dict[str, Any]) -> Dict[str, Any]:
            return replace(BusinessUser.from_dict(current), **data, updated_at=now).to_dict()

        updated = self.store.update_atomic(self.BUSINESS_USERS, user_id, _apply)
        if updated is None:
            raise NotFoundError("사업자 계정을 찾을 수 없습니다.")
        logging.info(f"Business profile updated for {user_id}: {sorted(data.keys())}")
        return BusinessUser.from_dict(updated)

    # --- 반려동물 ---

    def list_pets(self, user_id: str) -> List[PetProfile]:
        return self.get_user(user_id).pets

    def add_pet(self, user_id: str, payload: Dict[str, Any]) -> PetProfile:
        data = load_payload(PetProfileSchema(), payload)
        pet = PetProfile(pet_id=str(uuid.uuid4()), **data)
        self._update_user(user_id, lambda u: replace(u, pets=u.pets + [pet]))
        logging.info(f"Pet {pet.pet_id} added for user {user_id}")
        return pet

    def update_pet(self, user_id: str, pet_id: str, payload: Dict[str, Any]) -> PetProfile:
        """
        반려동물 프로필을 부분 업데이트합니다.
        이미 생성된 예약의 pet_details 스냅샷은 바뀌지 않습니다.
        """
        data = load_payload(PetProfileSchema(), payload, partial=True)

        def change(user: User) -> User:
            if user.find_pet(pet_id) is None:
                raise NotFoundError("해당 반려동물을 찾을 수 없습니다.")
            return replace(user, pets=[replace(p, **data) if p.pet_id == pet_id else p for p in user.pets])

        user = self._update_user(user_id, change)
        logging.info(f"Pet {pet_id} updated for user {user_id}")
        return user.find_pet(pet_id)

    def remove_pet(self, user_id: str, pet_id: str) -> None:
        def change(user: User) -> User:
            if user.find_pet(pet_id) is None:
                raise NotFoundError("해당 반려동물을 찾을 수 없습니다.")
            return replace(user, pets=[p for p in user.pets if p.pet_id != pet_id])

        self._update_user(user_id, change)
        logging.info(f"Pet {pet_id} removed for user {user_id}")

    def _update_user(self, user_id: str, change: Callable[[User], User]) -> User:
        now = self.clock()

        def _apply(data: Dict[str, Any]) -> Dict[str, Any]:
            return replace(change(User.from_dict(data)), updated_at=now).to_dict()

        updated = self.store.update_atomic(self.USERS, user_id, _apply)
        if updated is None:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        return User.from_dict(updated)
