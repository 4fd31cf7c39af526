# skin_admin/models/product.py
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def parse_tags(value: Any) -> List[str]:
    """'保湿, 敏感肌' 같은 쉼표 구분 문자열이나 리스트를 태그 리스트로 변환합니다."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    return [tag.strip() for tag in str(value).replace('、', ',').split(',') if tag.strip()]


def parse_number(value: Any, cast=float) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError("non-finite number")
        return cast(number)
    except (TypeError, ValueError, OverflowError):
        logging.warning(f"Invalid numeric product value '{value}'")
        return None


@dataclass
class Product:
    """
    Firestore 'products' 컬렉션 문서 구조 (정규화된 필드명 기준).
    저장소에는 일본어 라벨로 저장되며, 변환은 PRODUCT_FIELDS 매핑이 담당합니다.
    """
    product_id: str
    product_name: str = ""
    brand: str = ""
    category: str = ""
    description: str = ""
    ingredients: str = ""
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    external_url: Optional[str] = None
    evaluation_score: Optional[float] = None
    review_count: Optional[int] = None
    volume_price: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            product_id=data['id'],
            product_name=data.get('productName') or "",
            brand=data.get('brand') or "",
            category=data.get('category') or "",
            description=data.get('description') or "",
            ingredients=data.get('ingredients') or "",
            image_url=data.get('imageUrl') or None,
            product_url=data.get('productUrl') or None,
            external_url=data.get('externalUrl') or None,
            evaluation_score=parse_number(data.get('evaluationScore')),
            review_count=parse_number(data.get('reviewCount'), int),
            volume_price=data.get('volumePrice') or None,
            tags=parse_tags(data.get('tags')),
        )

    def matches(self, query: str) -> bool:
        """상품명/브랜드/카테고리에 대한 대소문자 무시 부분 일치 검색."""
        q = query.strip().lower()
        if not q:
            return True
        return any(q in (value or "").lower() for value in (self.product_name, self.brand, self.category))
