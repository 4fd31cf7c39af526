# skin_admin/api/products/services.py
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from skin_admin.models.product import Product, parse_number, parse_tags
from skin_admin.services.data_access import DataAccessLayer, ImportResult
from skin_admin.services.field_mapping import PRODUCT_FIELDS

logger = logging.getLogger(__name__)

PRODUCTS = 'products'

# CSV 헤더에 반드시 있어야 하고 각 행에서 비어 있으면 안 되는 열 (저장소 라벨)
REQUIRED_COLUMNS = ("商品名", "ブランド名", "カテゴリ")


@dataclass
class ProductPage:
    products: List[Product] = field(default_factory=list)
    has_next_page: bool = False
    last_doc_id: Optional[str] = None


@dataclass
class CsvImportReport:
    total_rows: int = 0
    skipped_rows: int = 0
    imported_ids: List[str] = field(default_factory=list)


def _coerce_product_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """정규화된 상품 필드의 타입을 맞춥니다 (점수/리뷰 수는 숫자, 태그는 리스트)."""
    coerced = {k: v for k, v in data.items() if v is not None}
    if 'evaluationScore' in coerced:
        coerced['evaluationScore'] = parse_number(coerced['evaluationScore'])
    if 'reviewCount' in coerced:
        coerced['reviewCount'] = parse_number(coerced['reviewCount'], int)
    if 'tags' in coerced:
        coerced['tags'] = parse_tags(coerced['tags'])
    return {k: v for k, v in coerced.items() if v is not None}


class ProductService:
    """상품 카탈로그 조회/생성/CSV 일괄 가져오기를 담당하는 서비스."""

    def __init__(self, data_access: DataAccessLayer, page_size: int = 20, import_max_workers: Optional[int] = None):
        self.data = data_access
        self.page_size = page_size
        self.import_max_workers = import_max_workers
        logger.info("ProductService initialized.")

    def get_products(self, page_size: Optional[int] = None, cursor: Optional[str] = None,
                     search: str = "", cancel_token=None) -> ProductPage:
        """
        커서 기반으로 상품 한 페이지를 조회합니다. search는 받아온 페이지 안에서만 적용되는
        클라이언트 측 필터이며, 페이지 경계(has_next_page, last_doc_id)에는 영향을 주지 않습니다.
        """
        page = self.data.list_page(PRODUCTS, page_size or self.page_size, cursor,
                                   mapping=PRODUCT_FIELDS, cancel_token=cancel_token)
        products = [Product.from_dict(doc) for doc in page.documents]
        if search:
            products = [p for p in products if p.matches(search)]
        return ProductPage(products=products, has_next_page=page.has_next_page, last_doc_id=page.last_doc_id)

    def get_product(self, product_id: str) -> Optional[Product]:
        document = self.data.get_document(PRODUCTS, product_id, mapping=PRODUCT_FIELDS)
        return Product.from_dict(document) if document else None

    def create_product(self, data: Dict[str, Any]) -> str:
        """정규화된 필드로 받은 상품을 저장소 라벨로 변환해 생성합니다. 새 문서 ID를 반환합니다."""
        payload = _coerce_product_fields(data)
        product_id = self.data.create_document(PRODUCTS, payload, mapping=PRODUCT_FIELDS)
        logger.info(f"Product created: {product_id}")
        return product_id

    def import_rows(self, rows: List[Dict[str, Any]]) -> ImportResult:
        """검증된 정규화 행들을 병합 업서트합니다. 실패 시 BulkImportError가 전파됩니다."""
        payload = [_coerce_product_fields(row) for row in rows]
        return self.data.bulk_upsert(PRODUCTS, payload, mapping=PRODUCT_FIELDS,
                                     max_workers=self.import_max_workers)

    @staticmethod
    def parse_csv(text: str) -> Tuple[List[Dict[str, Any]], int]:
        """
        CSV 텍스트를 검증된 정규화 행 목록으로 변환합니다.
        헤더에 필수 열이 없으면 ValueError, 필수 값이 빈 행은 건너뛰고 개수를 셉니다.
        """
        reader = csv.DictReader(io.StringIO(text.lstrip('\ufeff')))
        headers = [h.strip() for h in (reader.fieldnames or [])]
        missing = [column for column in REQUIRED_COLUMNS if column not in headers]
        if missing:
            raise ValueError(f"CSV 헤더에 필수 열이 없습니다: {', '.join(missing)}")

        rows, skipped = [], 0
        for raw in reader:
            row = {(k or "").strip(): (v or "").strip() for k, v in raw.items() if k is not None}
            if any(not row.get(column) for column in REQUIRED_COLUMNS):
                skipped += 1
                continue
            values = {k: v for k, v in row.items() if v != ""}
            normalized = PRODUCT_FIELDS.to_normalized(values)
            rows.append(normalized)
        return rows, skipped

    def import_csv(self, text: str) -> CsvImportReport:
        rows, skipped = self.parse_csv(text)
        report = CsvImportReport(total_rows=len(rows) + skipped, skipped_rows=skipped)
        if not rows:
            logger.info(f"CSV import: no valid rows ({skipped} skipped)")
            return report
        result = self.import_rows(rows)
        report.imported_ids = result.succeeded
        logger.info(f"CSV import: {len(result.succeeded)} imported, {skipped} skipped")
        return report
