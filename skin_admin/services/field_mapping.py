# skin_admin/services/field_mapping.py
from typing import Any, Dict, Iterable, Tuple


class FieldMapping:
    """
    저장소의 원본 필드 라벨과 API에서 쓰는 정규화된 필드명을 양방향으로 변환하는 테이블.
    테이블에 없는 키는 그대로 통과시킵니다.
    """

    def __init__(self, pairs: Iterable[Tuple[str, str]]):
        self._to_normalized: Dict[str, str] = {}
        self._to_source: Dict[str, str] = {}
        for source, normalized in pairs:
            if source in self._to_normalized or normalized in self._to_source:
                raise ValueError(f"Duplicate field mapping entry: {source!r} <-> {normalized!r}")
            self._to_normalized[source] = normalized
            self._to_source[normalized] = source

    @property
    def source_labels(self):
        return list(self._to_normalized.keys())

    @property
    def normalized_names(self):
        return list(self._to_source.keys())

    def normalized_name(self, source_label: str) -> str:
        return self._to_normalized.get(source_label, source_label)

    def source_label(self, normalized_name: str) -> str:
        return self._to_source.get(normalized_name, normalized_name)

    def to_normalized(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {self.normalized_name(k): v for k, v in data.items()}

    def to_source(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {self.source_label(k): v for k, v in data.items()}


# 상품 데이터는 입력 시점의 일본어 라벨 그대로 products 컬렉션에 저장되어 있습니다.
PRODUCT_FIELDS = FieldMapping([
    ("カテゴリ", "category"),
    ("タグ", "tags"),
    ("ブランド名", "brand"),
    ("口コミ件数", "reviewCount"),
    ("商品URL", "productUrl"),
    ("商品名", "productName"),
    ("商品画像URL", "imageUrl"),
    ("商品詳細", "description"),
    ("外部URL", "externalUrl"),
    ("容量・参考価格", "volumePrice"),
    ("評価スコア", "evaluationScore"),
    ("全成分", "ingredients"),
])

# 나머지 컬렉션은 저장소 필드명이 곧 정규화된 이름입니다.
IDENTITY_FIELDS = FieldMapping([])
