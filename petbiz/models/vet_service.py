# petbiz/models/vet_service.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from petbiz.utils.datetime_utils import DateTimeUtils


@dataclass
class VetService:
    """
    Firestore 'vet_services' 컬렉션 문서 구조.
    사업자 계정이 제공하는 서비스 카탈로그 항목이며, 예약과는 독립적인 수명 주기를 가집니다.
    """
    service_id: str
    user_id: str  # 소유 사업자 계정 ID
    name: str
    category: str
    price: float
    business_type: str = "vet"
    description: Optional[str] = None
    duration: Optional[str] = None
    is_active: bool = True
    is_emergency: bool = False
    requires_appointment: bool = True
    equipment_needed: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VetService":
        processed_data = data.copy()
        processed_data['price'] = float(processed_data['price'])
        if processed_data.get('equipment_needed') is None:
            processed_data['equipment_needed'] = []
        return cls(**processed_data)
