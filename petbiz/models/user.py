# petbiz/models/user.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from petbiz.utils.datetime_utils import DateTimeUtils


class AccountRole(Enum):
    """토큰 클레임에 담기는 계정 역할."""
    OWNER = "owner"
    BUSINESS = "business"


class BusinessType(Enum):
    VET = "vet"
    TRAINER = "trainer"
    BOARDING = "boarding"
    WALKER = "walker"
    NGO = "ngo"
    GROOMER = "groomer"


@dataclass
class PetProfile:
    """사용자 문서에 임베드되는 반려동물 프로필 (순서 유지)."""
    pet_id: str
    name: str
    species: str
    breed: Optional[str] = None
    age: Optional[str] = None
    weight: Optional[str] = None
    medical_history: Optional[str] = None


@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스 (반려인 계정).
    """
    user_id: str
    name: str
    email: str
    contact_no: str
    address: str
    password_hash: str
    pets: List[PetProfile] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    def find_pet(self, pet_id: str) -> Optional[PetProfile]:
        return next((p for p in self.pets if p.pet_id == pet_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        processed_data = data.copy()
        processed_data['pets'] = [PetProfile(**p) for p in processed_data.get('pets') or []]
        return cls(**processed_data)


@dataclass
class BusinessUser:
    """
    Firestore 'business_users' 컬렉션 문서 구조.
    수의사, 훈련사, 위탁, 산책, 보호소 등 서비스 제공자 계정입니다.
    """
    user_id: str
    business_name: str
    name: str
    email: str
    contact_no: str
    business_type: BusinessType
    address: str
    password_hash: str
    emergency_24hrs: bool = False  # 24시간 응급 대응 여부
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['business_type'] = self.business_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BusinessUser":
        processed_data = data.copy()
        processed_data['business_type'] = BusinessType(processed_data['business_type'])
        return cls(**processed_data)
